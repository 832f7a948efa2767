"""VectorPoint model: one stored (vector, payload) pair, corresponding to one chunk."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PayloadModel(BaseModel):
    """Base for payload parts. Serialised with camelCase keys, the layout the collections are indexed on."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChunkMetadata(PayloadModel):
    """Per-chunk metadata.

    Attributes:
        title:        Display title, the original file name.
        category:     Coarse document category; "general" unless classified.
        chunk_index:  Zero-based position among the document's emitted chunks.
        word_count:   Number of words in the chunk.
        folder_id:    Opaque folder tag, used as equality filter at search time.
    """

    title: str
    category: str = "general"
    chunk_index: int
    word_count: int
    folder_id: str | None = None


class DocumentInfo(PayloadModel):
    """Document-level metadata, identical across all chunks of one upload.

    The media type is stored under the "fileType" key, which carries a
    keyword index in every collection.
    """

    original_name: str
    media_type: str = Field(alias="fileType")
    uploaded_at: str
    byte_size: int
    owner_id: str | None = None
    is_admin_document: bool = False


class PointPayload(PayloadModel):
    document_id: str
    chunk_id: str
    content: str
    metadata: ChunkMetadata
    document: DocumentInfo


class VectorPoint(BaseModel):
    """A point as sent to the vector store.

    Attributes:
        id:      UUID string, unique per (document_id, chunk_index).
        vector:  Embedding of the chunk content; its length must match the collection's vector size.
        payload: Stored metadata.
    """

    id: str
    vector: list[float]
    payload: PointPayload

    def to_store_dict(self) -> dict:
        """Returns the JSON-ready representation with camelCase payload keys."""
        return {
            "id": self.id,
            "vector": self.vector,
            "payload": self.payload.model_dump(by_alias=True),
        }
