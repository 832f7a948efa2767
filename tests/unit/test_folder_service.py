"""Unit tests for the FolderService."""

import json

import pytest

from services.folders.FolderService import FolderNotFound, FolderService


@pytest.fixture
def folders(helper_config) -> FolderService:
    return FolderService(helper_config=helper_config)


class TestCreateAndList:
    @pytest.mark.asyncio
    async def test_create_folder(self, folders: FolderService) -> None:
        folder = await folders.create_folder(" Japan 2025 ", owner_id="u1", description="spring trip")

        assert folder.name == "Japan 2025"
        assert folder.document_count == 0
        assert folder.is_admin is False
        assert await folders.get_folder(folder.id) == folder

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, folders: FolderService) -> None:
        with pytest.raises(ValueError):
            await folders.create_folder("   ", owner_id="u1")

    @pytest.mark.asyncio
    async def test_visibility(self, folders: FolderService) -> None:
        shared = await folders.create_folder("Guides", owner_id="admin", is_admin=True)
        mine = await folders.create_folder("Mine", owner_id="u1")
        await folders.create_folder("Theirs", owner_id="u2")

        tenant_view = {f.id for f in await folders.get_folders(owner_id="u1")}
        admin_view = {f.id for f in await folders.get_folders(owner_id="admin", is_admin=True)}

        assert tenant_view == {shared.id, mine.id}
        assert admin_view == {shared.id}

    @pytest.mark.asyncio
    async def test_unknown_folder(self, folders: FolderService) -> None:
        with pytest.raises(FolderNotFound):
            await folders.get_folder("nope")


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_owner_can_update(self, folders: FolderService) -> None:
        folder = await folders.create_folder("Old", owner_id="u1")
        updated = await folders.update_folder(folder.id, owner_id="u1", name="New", description="d")

        assert updated.name == "New"
        assert updated.description == "d"

    @pytest.mark.asyncio
    async def test_other_owner_cannot_update_or_delete(self, folders: FolderService) -> None:
        folder = await folders.create_folder("Mine", owner_id="u1")

        with pytest.raises(PermissionError):
            await folders.update_folder(folder.id, owner_id="u2", name="Stolen")
        with pytest.raises(PermissionError):
            await folders.delete_folder(folder.id, owner_id="u2")
        assert (await folders.get_folder(folder.id)).name == "Mine"

    @pytest.mark.asyncio
    async def test_delete(self, folders: FolderService) -> None:
        folder = await folders.create_folder("Temp", owner_id="u1")
        await folders.delete_folder(folder.id, owner_id="u1")

        with pytest.raises(FolderNotFound):
            await folders.get_folder(folder.id)
        with pytest.raises(FolderNotFound):
            await folders.delete_folder(folder.id, owner_id="u1")


class TestDocumentCount:
    @pytest.mark.asyncio
    async def test_increment(self, folders: FolderService) -> None:
        folder = await folders.create_folder("Trips", owner_id="u1")
        await folders.increment_document_count(folder.id)
        await folders.increment_document_count(folder.id)

        assert (await folders.get_folder(folder.id)).document_count == 2

    @pytest.mark.asyncio
    async def test_unknown_folder_is_ignored(self, folders: FolderService) -> None:
        await folders.increment_document_count("unknown")


class TestPersistence:
    @pytest.mark.asyncio
    async def test_folders_survive_restart(self, helper_config, monkeypatch, tmp_path) -> None:
        store_path = tmp_path / "folders.json"
        monkeypatch.setenv("FOLDER_STORE_PATH", str(store_path))

        first = FolderService(helper_config=helper_config)
        folder = await first.create_folder("Trips", owner_id="u1")
        await first.increment_document_count(folder.id)

        second = FolderService(helper_config=helper_config)
        restored = await second.get_folder(folder.id)

        assert restored.name == "Trips"
        assert restored.document_count == 1
        assert folder.id in json.loads(store_path.read_text(encoding="utf-8"))
