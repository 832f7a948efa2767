"""Pydantic models for search results."""

from typing import Literal

from pydantic import BaseModel


class SearchResultItem(BaseModel):
    """A single ranked chunk.

    metadata and document are the stored payload parts with camelCase keys.
    """

    point_id: str
    score: float
    content: str
    metadata: dict
    document: dict
    source: Literal["admin", "personal"]
    excerpt: str = ""
    highlights: list[str] = []


class SearchResponse(BaseModel):
    """Ranked results plus what the engine did to produce them.

    Attributes:
        collections_searched: Collections that existed and answered.
        collections_failed:   Collections whose search raised or timed out; they contributed nothing.
    """

    query: str
    results: list[SearchResultItem]
    total: int
    collections_searched: list[str]
    collections_failed: list[str] = []
    processing_time_ms: int
