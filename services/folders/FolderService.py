"""Folder registry.

Folders are simple key-value records (folder id → Folder). They live in
memory and, when FOLDER_STORE_PATH is set, are mirrored to a JSON file after
every change. The pipeline only uses folder ids as opaque tags and never
checks that a folder exists.
"""

import asyncio
import json
import os
import uuid
from datetime import datetime, timezone

from shared.helper.HelperConfig import HelperConfig
from shared.models.folder import Folder


class FolderNotFound(KeyError):
    pass


class FolderService:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._store_path = helper_config.get_string_val("FOLDER_STORE_PATH", default="") or None
        self._folders: dict[str, Folder] = {}
        self._lock = asyncio.Lock()
        self._load()

    ##########################################
    ############## PERSISTENCE ###############
    ##########################################

    def _load(self) -> None:
        if not self._store_path or not os.path.exists(self._store_path):
            return
        with open(self._store_path, encoding="utf-8") as fh:
            raw = json.load(fh)
        self._folders = {folder_id: Folder.model_validate(data) for folder_id, data in raw.items()}
        self.logging.info("Loaded %d folders from %s", len(self._folders), self._store_path)

    def _save(self) -> None:
        if not self._store_path:
            return
        tmp_path = f"{self._store_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump({folder_id: f.model_dump() for folder_id, f in self._folders.items()}, fh, indent=2)
        os.replace(tmp_path, self._store_path)

    ##########################################
    ################ CRUD ####################
    ##########################################

    async def create_folder(self, name: str, owner_id: str, is_admin: bool = False, description: str | None = None) -> Folder:
        if not name.strip():
            raise ValueError("Folder name must not be empty.")
        folder = Folder(
            id=str(uuid.uuid4()),
            name=name.strip(),
            description=description,
            created_at=datetime.now(timezone.utc).isoformat(),
            owner_id=owner_id,
            is_admin=is_admin,
        )
        async with self._lock:
            self._folders[folder.id] = folder
            self._save()
        self.logging.info("Created folder %r (%s) for owner %s", folder.name, folder.id, owner_id)
        return folder

    async def get_folders(self, owner_id: str, is_admin: bool = False) -> list[Folder]:
        """Folders visible to a requester: admins see admin folders, tenants their own plus admin folders."""
        visible = [
            f for f in self._folders.values()
            if f.is_admin or (not is_admin and f.owner_id == owner_id)
        ]
        return sorted(visible, key=lambda f: f.created_at)

    async def get_folder(self, folder_id: str) -> Folder:
        folder = self._folders.get(folder_id)
        if folder is None:
            raise FolderNotFound(folder_id)
        return folder

    async def update_folder(self, folder_id: str, owner_id: str, name: str | None = None, description: str | None = None) -> Folder:
        async with self._lock:
            folder = self._owned_folder(folder_id, owner_id)
            if name is not None:
                if not name.strip():
                    raise ValueError("Folder name must not be empty.")
                folder.name = name.strip()
            if description is not None:
                folder.description = description
            self._save()
        return folder

    async def delete_folder(self, folder_id: str, owner_id: str) -> None:
        """Delete a folder record. Points tagged with its id keep the tag."""
        async with self._lock:
            self._owned_folder(folder_id, owner_id)
            del self._folders[folder_id]
            self._save()
        self.logging.info("Deleted folder %s", folder_id)

    async def increment_document_count(self, folder_id: str) -> None:
        """Count one more document in the folder. Unknown ids are ignored with a warning."""
        async with self._lock:
            folder = self._folders.get(folder_id)
            if folder is None:
                self.logging.warning("Cannot increment document count of unknown folder %s", folder_id)
                return
            folder.document_count += 1
            self._save()

    def _owned_folder(self, folder_id: str, owner_id: str) -> Folder:
        folder = self._folders.get(folder_id)
        if folder is None:
            raise FolderNotFound(folder_id)
        if folder.owner_id != owner_id:
            raise PermissionError(f"Folder {folder_id} does not belong to owner {owner_id}.")
        return folder
