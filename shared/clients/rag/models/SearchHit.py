from pydantic import BaseModel


class SearchHit(BaseModel):
    """A single candidate returned by a vector similarity search.

    Attributes:
        id:      Point id as stored.
        score:   Similarity score; in [0, 1] for cosine collections with non-negative similarity.
        payload: Raw payload dict with camelCase keys, as stored.
    """

    id: str
    score: float
    payload: dict = {}
