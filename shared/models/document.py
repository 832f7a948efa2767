"""Pydantic models for documents and their chunks.

Hierarchy:
  Document      — one uploaded file instance, immutable once ingested.
  Chunk         — a contiguous word window of a document's extracted text.
  IngestResult  — what an ingestion call reports back.
"""

from pydantic import BaseModel


class Document(BaseModel):
    """One uploaded file instance.

    owner_id is None only for documents uploaded without a tenant, which
    are routed to the admin collection.
    """

    document_id: str
    original_name: str
    media_type: str
    byte_size: int
    uploaded_at: str
    owner_id: str | None = None
    is_admin_document: bool = False
    folder_id: str | None = None


class Chunk(BaseModel):
    """A word window of a document.

    end_word_offset is exclusive, so word_count == end_word_offset - start_word_offset.
    """

    chunk_id: str
    content: str
    chunk_index: int
    word_count: int
    start_word_offset: int
    end_word_offset: int


class IngestResult(BaseModel):
    document_id: str
    chunks_stored: int
    filename: str
    collection_name: str
    is_admin_document: bool
    failed_indexes: list[str] = []
