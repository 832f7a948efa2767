from pydantic import BaseModel


class DeleteDocumentResponse(BaseModel):
    document_id: str
    points_deleted: int


class CollectionsResponse(BaseModel):
    collections: list[str]


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    vector_store: str
    embeddings: str
