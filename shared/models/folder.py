from pydantic import BaseModel


class Folder(BaseModel):
    """A named grouping of documents. Documents reference it by id only."""

    id: str
    name: str
    description: str | None = None
    created_at: str
    document_count: int = 0
    owner_id: str
    is_admin: bool = False
