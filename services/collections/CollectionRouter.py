"""Tenant → collection routing and idempotent collection provisioning.

One admin collection is shared by all tenants; every non-admin tenant gets a
private collection whose name is derived from its owner id.
"""

from typing import Literal

from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.exceptions.RetrievalErrors import CollectionProvisionFailed
from shared.helper.HelperConfig import HelperConfig

DEFAULT_ADMIN_COLLECTION = "tala_admin_knowledge"
DEFAULT_USER_PREFIX = "tala_user_"
DEFAULT_USER_SUFFIX = "_knowledge"

# (payload field, index schema) created with every new collection
PAYLOAD_INDEXES: list[tuple[str, str]] = [
    ("metadata.category", "keyword"),
    ("document.fileType", "keyword"),
    ("documentId", "keyword"),
    ("metadata.chunkIndex", "integer"),
    ("metadata.folderId", "keyword"),
]


class CollectionRouter:
    """Maps (owner_id, is_admin) to collection names and makes sure collections exist before use."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        vector_size: int,
        distance: str = "Cosine",
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag = rag_client
        self._vector_size = vector_size
        self._distance = distance
        self.admin_collection = helper_config.get_string_val("RAG_ADMIN_COLLECTION", default=DEFAULT_ADMIN_COLLECTION)
        self._user_prefix = helper_config.get_string_val("RAG_USER_COLLECTION_PREFIX", default=DEFAULT_USER_PREFIX)
        self._user_suffix = helper_config.get_string_val("RAG_USER_COLLECTION_SUFFIX", default=DEFAULT_USER_SUFFIX)
        self._known_collections: set[str] = set()

    ##########################################
    ################ NAMING ##################
    ##########################################

    def collection_for_missing_owner(self) -> str:
        """Collection used for a non-admin request that carries no owner id.

        Such documents and queries currently share the admin collection.
        """
        return self.admin_collection

    def resolve_collection_name(self, owner_id: str | None, is_admin: bool) -> str:
        """Return the collection a document of this owner is stored in.

        Args:
            owner_id (str | None): Tenant id.
            is_admin (bool): True for shared admin knowledge.

        Returns:
            str: The collection name, deterministic for the same inputs.
        """
        if is_admin:
            return self.admin_collection
        if not owner_id:
            return self.collection_for_missing_owner()
        return f"{self._user_prefix}{owner_id}{self._user_suffix}"

    def resolve_search_collections(self, owner_id: str | None, is_admin: bool) -> list[str]:
        """Return the collections a query of this requester fans out to.

        Admins search the admin collection only; tenants search their private
        collection and the admin collection.

        Returns:
            list[str]: Distinct collection names, private collection first.
        """
        if is_admin:
            return [self.admin_collection]
        collections = [self.resolve_collection_name(owner_id, False), self.admin_collection]
        return list(dict.fromkeys(collections))

    def source_label(self, collection: str) -> Literal["admin", "personal"]:
        return "admin" if collection == self.admin_collection else "personal"

    ##########################################
    ############# PROVISIONING ###############
    ##########################################

    async def ensure_collection(self, collection: str) -> list[str]:
        """Create the collection with its payload indexes unless it already exists.

        Safe to call repeatedly and concurrently. A failed payload index only
        degrades filter performance, so it is logged and reported instead of raised.

        Args:
            collection (str): The collection name.

        Returns:
            list[str]: Payload fields whose index could not be created; [] if the
                collection already existed or every index succeeded.

        Raises:
            CollectionProvisionFailed: If listing or creating the collection fails.
        """
        if collection in self._known_collections:
            return []
        try:
            exists = await self._rag.do_collection_exists(collection)
            if exists:
                self._known_collections.add(collection)
                return []
            self.logging.info("Creating collection: %s", collection)
            created = await self._rag.do_create_collection(collection, vector_size=self._vector_size, distance=self._distance)
        except Exception as exc:
            self.logging.error("Failed to ensure collection %s: %s", collection, exc)
            raise CollectionProvisionFailed(collection, exc) from exc

        self._known_collections.add(collection)
        if not created:
            return []
        return await self._create_payload_indexes(collection)

    async def _create_payload_indexes(self, collection: str) -> list[str]:
        failed: list[str] = []
        for field, schema in PAYLOAD_INDEXES:
            try:
                await self._rag.do_create_payload_index(collection, field, schema)
            except Exception as exc:
                self.logging.warning("Failed to create index %s on %s: %s", field, collection, exc)
                failed.append(field)
        return failed

    def forget(self, collection: str) -> None:
        """Drop a collection from the in-process existence cache, e.g. after it was deleted externally."""
        self._known_collections.discard(collection)
