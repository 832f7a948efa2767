from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    owner_id: str | None = None
    is_admin: bool = False
    limit: int | None = Field(default=None, ge=1, le=100)
    score_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    folder_id: str | None = None


class CreateFolderRequest(BaseModel):
    name: str = Field(min_length=1)
    owner_id: str
    is_admin: bool = False
    description: str | None = None


class UpdateFolderRequest(BaseModel):
    owner_id: str
    name: str | None = None
    description: str | None = None


class DeleteDocumentRequest(BaseModel):
    owner_id: str | None = None
    is_admin: bool = False
