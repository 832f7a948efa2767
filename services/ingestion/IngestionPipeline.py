"""Ingestion pipeline.

Extracts the text of one uploaded document, splits it into word windows,
embeds the chunks batch by batch and upserts all resulting points into the
owner's collection in a single durable write.
"""

import uuid
from datetime import datetime, timezone

from services.chunking.Chunker import Chunker
from services.collections.CollectionRouter import CollectionRouter
from services.extraction.TextExtractor import TextExtractor
from services.folders.FolderService import FolderService
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import ChunkMetadata, DocumentInfo, PointPayload, VectorPoint
from shared.exceptions.RetrievalErrors import EmptyDocument, NoChunksProduced, VectorStoreUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, Document, IngestResult

EMBED_BATCH_SIZE = 10  # chunks embedded concurrently per batch

# Fixed namespace for UUIDv5 point ids.
# Changing this value would orphan all existing point ids.
_POINT_ID_NAMESPACE = uuid.UUID("3b8f2d6e-0c4a-4f7e-9a1d-5e6c7b8a9f01")


def make_point_id(document_id: str, chunk_index: int) -> str:
    """Build the point id of a chunk.

    Unique per (document_id, chunk_index). document_id is fresh for every
    upload, so re-uploading identical text never overwrites older points,
    while retrying an ingestion with the same document_id overwrites its own
    points instead of duplicating them.

    Args:
        document_id (str): The document id.
        chunk_index (int): Zero-based chunk index.

    Returns:
        str: UUID string usable as a point id.
    """
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, f"{document_id}:{chunk_index}"))


class IngestionPipeline:
    """Orchestrates extraction → chunking → embedding → upsert for one document."""

    def __init__(
        self,
        helper_config: HelperConfig,
        extractor: TextExtractor,
        chunker: Chunker,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        router: CollectionRouter,
        folder_service: FolderService | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._extractor = extractor
        self._chunker = chunker
        self._embed_client = embed_client
        self._rag_client = rag_client
        self._router = router
        self._folder_service = folder_service
        self.batch_size = helper_config.get_int_val("INGEST_BATCH_SIZE", default=EMBED_BATCH_SIZE, minimum=1)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def ingest(
        self,
        buffer: bytes,
        media_type: str,
        filename: str,
        owner_id: str | None,
        is_admin: bool,
        folder_id: str | None = None,
        document_id: str | None = None,
    ) -> IngestResult:
        """Ingest one document.

        All-or-nothing at the document level: any failure aborts before the
        upsert, nothing is reported as ingested.

        Args:
            buffer (bytes): Raw file content.
            media_type (str): Declared MIME type.
            filename (str): Original file name, stored as title.
            owner_id (str | None): Tenant id.
            is_admin (bool): Store into the shared admin collection.
            folder_id (str | None): Optional folder tag attached to every chunk.
            document_id (str | None): Reuse an id to retry a failed ingestion idempotently;
                a fresh id is generated otherwise.

        Returns:
            IngestResult: The document id and the number of stored points.

        Raises:
            UnsupportedMediaType, ExtractionFailed: From text extraction.
            EmptyDocument: If the document has no text.
            NoChunksProduced: If chunking yields nothing.
            EmbeddingFailed: If the provider fails or returns a wrong dimension.
            CollectionProvisionFailed: If the target collection cannot be created.
            VectorStoreUnavailable: If the upsert fails.
        """
        document = Document(
            document_id=document_id or str(uuid.uuid4()),
            original_name=filename,
            media_type=self._extractor.normalize_media_type(media_type),
            byte_size=len(buffer),
            uploaded_at=datetime.now(timezone.utc).isoformat(),
            owner_id=owner_id,
            is_admin_document=is_admin,
            folder_id=folder_id,
        )
        collection = self._router.resolve_collection_name(owner_id, is_admin)
        self.logging.info("Processing upload %s for owner %s (admin: %s) into %s", filename, owner_id, is_admin, collection)

        failed_indexes = await self._router.ensure_collection(collection)

        text = self._extractor.extract(buffer, media_type, filename)
        if not text or not text.strip():
            raise EmptyDocument(filename)

        chunks = self._chunker.chunk(text)
        if not chunks:
            raise NoChunksProduced(filename)

        points = await self._build_points(document, chunks)

        try:
            await self._rag_client.do_upsert_points(collection, [p.to_store_dict() for p in points], wait=True)
        except VectorStoreUnavailable:
            # the collection may have been dropped behind our back; re-check next time
            self._router.forget(collection)
            raise

        self.logging.info("Stored %d vectors for document: %s", len(points), filename, color="green")

        if folder_id and self._folder_service is not None:
            await self._folder_service.increment_document_count(folder_id)

        return IngestResult(
            document_id=document.document_id,
            chunks_stored=len(points),
            filename=filename,
            collection_name=collection,
            is_admin_document=is_admin,
            failed_indexes=failed_indexes,
        )

    async def _build_points(self, document: Document, chunks: list[Chunk]) -> list[VectorPoint]:
        """Embed chunks in sequential batches and build one point per chunk.

        Within a batch all embedding calls run concurrently; vectors are
        matched to chunks by position, never by completion order.
        """
        document_info = DocumentInfo(
            original_name=document.original_name,
            media_type=document.media_type,
            uploaded_at=document.uploaded_at,
            byte_size=document.byte_size,
            owner_id=document.owner_id,
            is_admin_document=document.is_admin_document,
        )
        points: list[VectorPoint] = []
        for batch_start in range(0, len(chunks), self.batch_size):
            batch = chunks[batch_start: batch_start + self.batch_size]
            vectors = await self._embed_client.embed_texts([chunk.content for chunk in batch])
            # embed_texts already enforces the vector size
            for chunk, vector in zip(batch, vectors):
                points.append(VectorPoint(
                    id=make_point_id(document.document_id, chunk.chunk_index),
                    vector=vector,
                    payload=PointPayload(
                        document_id=document.document_id,
                        chunk_id=chunk.chunk_id,
                        content=chunk.content,
                        metadata=ChunkMetadata(
                            title=document.original_name,
                            chunk_index=chunk.chunk_index,
                            word_count=chunk.word_count,
                            folder_id=document.folder_id,
                        ),
                        document=document_info,
                    ),
                ))
            self.logging.debug(
                "Embedded batch %d-%d of %d chunks for %s",
                batch_start, batch_start + len(batch) - 1, len(chunks), document.original_name,
            )
        return points

    ##########################################
    ############### DELETION #################
    ##########################################

    async def delete_document(self, document_id: str, owner_id: str | None, is_admin: bool) -> int:
        """Remove every point of a document from the requester's collection.

        Args:
            document_id (str): The document id returned by ingest().
            owner_id (str | None): Tenant id; only this tenant's collection is touched.
            is_admin (bool): Delete from the admin collection instead.

        Returns:
            int: Number of points removed; 0 if the document or collection is unknown,
                or if a non-admin request carries no owner id.
        """
        if not is_admin and not owner_id:
            # never fall back to the admin collection for a destructive call
            self.logging.warning("Refusing to delete document %s: no owner id on a non-admin request", document_id)
            return 0
        collection = self._router.resolve_collection_name(owner_id, is_admin)
        if not await self._rag_client.do_collection_exists(collection):
            return 0
        doc_filter = self._rag_client.get_equality_filter({"documentId": document_id})
        count = await self._rag_client.do_count(collection, doc_filter)
        if count:
            await self._rag_client.do_delete_points_by_filter(collection, doc_filter)
        self.logging.info("Deleted %d points of document %s from %s", count, document_id, collection)
        return count
