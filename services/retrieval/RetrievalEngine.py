"""Retrieval engine: semantic search across the requester's collections.

Embeds the query once, searches the private and admin collections
concurrently, drops candidates under the score threshold and merges the
rest into one list ranked by score.
"""

import asyncio
import math
import re
import time

from services.collections.CollectionRouter import CollectionRouter
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import SearchResponse, SearchResultItem

DEFAULT_LIMIT = 10
DEFAULT_SCORE_THRESHOLD = 0.2
OVERFETCH = 5             # extra candidates per collection before the global merge
ALL_FOLDERS = "all"
EXCERPT_LENGTH = 200
HIGHLIGHTS_PER_TERM = 3


class RetrievalEngine:
    """Ranks stored chunks against a natural-language query."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        router: CollectionRouter,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._rag_client = rag_client
        self._router = router
        self.default_limit = helper_config.get_int_val("SEARCH_LIMIT", default=DEFAULT_LIMIT, minimum=1)
        self.default_score_threshold = float(helper_config.get_number_val("SEARCH_SCORE_THRESHOLD", default=DEFAULT_SCORE_THRESHOLD))
        timeout = helper_config.get_number_val("SEARCH_TIMEOUT", default=0)
        self.collection_timeout: float | None = float(timeout) if timeout > 0 else None

    ##########################################
    ################ CORE ####################
    ##########################################

    async def search(
        self,
        query: str,
        owner_id: str | None,
        is_admin: bool,
        limit: int | None = None,
        score_threshold: float | None = None,
        folder_id: str | None = None,
    ) -> SearchResponse:
        """Run a query against every collection the requester may read.

        A collection that is missing, unreachable or times out contributes no
        results; it never fails the whole search.

        Args:
            query (str): Natural-language query.
            owner_id (str | None): Tenant id of the requester.
            is_admin (bool): Admins search the admin collection only.
            limit (int | None): Maximum number of results, SEARCH_LIMIT by default.
            score_threshold (float | None): Minimum score, SEARCH_SCORE_THRESHOLD by default.
            folder_id (str | None): Restrict to one folder; None or "all" searches every folder.

        Returns:
            SearchResponse: Results in non-increasing score order, at most limit of them.

        Raises:
            ValueError: If limit is smaller than 1.
            EmbeddingFailed: If the query cannot be embedded.
        """
        started = time.monotonic()
        limit = self.default_limit if limit is None else limit
        score_threshold = self.default_score_threshold if score_threshold is None else score_threshold
        if limit < 1:
            raise ValueError(f"Search limit must be at least 1, got {limit}.")

        self.logging.info("Searching %r for owner %s (admin: %s), limit=%d", query[:80], owner_id, is_admin, limit)

        vector = await self._embed_client.embed_text(query)
        collections = self._router.resolve_search_collections(owner_id, is_admin)
        per_collection_limit = math.ceil(limit / len(collections)) + OVERFETCH
        search_filter = None
        if folder_id and folder_id != ALL_FOLDERS:
            search_filter = self._rag_client.get_equality_filter({"metadata.folderId": folder_id})

        outcomes = await asyncio.gather(*[
            self._search_collection(collection, vector, per_collection_limit, search_filter)
            for collection in collections
        ])

        candidates: list[SearchResultItem] = []
        searched: list[str] = []
        failed: list[str] = []
        for collection, outcome in zip(collections, outcomes):
            if outcome is None:
                failed.append(collection)
                continue
            if outcome is False:
                continue
            searched.append(collection)
            source = self._router.source_label(collection)
            for hit in outcome:
                if hit.score < score_threshold:
                    continue
                payload = hit.payload
                content = payload.get("content") or ""
                candidates.append(SearchResultItem(
                    point_id=hit.id,
                    score=hit.score,
                    content=content,
                    metadata=payload.get("metadata") or {},
                    document=payload.get("document") or {},
                    source=source,
                    excerpt=generate_excerpt(content, query),
                    highlights=generate_highlights(content, query),
                ))

        # stable sort keeps per-collection order for equal scores
        results = sorted(candidates, key=lambda item: item.score, reverse=True)[:limit]
        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.logging.info("Search completed: %d results in %dms", len(results), elapsed_ms)
        return SearchResponse(
            query=query,
            results=results,
            total=len(results),
            collections_searched=searched,
            collections_failed=failed,
            processing_time_ms=elapsed_ms,
        )

    async def _search_collection(self, collection: str, vector: list[float], limit: int, search_filter: dict | None):
        """Search a single collection.

        Returns:
            list[SearchHit] on success, False if the collection does not exist,
            None if the search failed.
        """
        try:
            return await asyncio.wait_for(
                self._do_search_collection(collection, vector, limit, search_filter),
                timeout=self.collection_timeout,
            )
        except asyncio.TimeoutError:
            self.logging.warning("Search in collection %s timed out after %.1fs", collection, self.collection_timeout)
            return None
        except Exception as exc:
            self.logging.warning("Failed to search collection %s: %s", collection, exc)
            return None

    async def _do_search_collection(self, collection: str, vector: list[float], limit: int, search_filter: dict | None):
        if not await self._rag_client.do_collection_exists(collection):
            self.logging.info("Collection %s does not exist, skipping", collection)
            return False
        return await self._rag_client.do_search(collection, vector, limit, search_filter)


##########################################
############### HELPERS ##################
##########################################

def _query_terms(query: str) -> list[str]:
    return [term for term in re.findall(r"\w+", query.lower()) if term]


def generate_excerpt(content: str, query: str, max_length: int = EXCERPT_LENGTH) -> str:
    """Cut the max_length window of content that contains the most query terms.

    Windows are probed every 50 characters; the excerpt is trimmed to word
    boundaries and marked with "..." where content was cut.
    """
    if len(content) <= max_length:
        return content
    terms = _query_terms(query)
    lowered = content.lower()
    best_position, best_matches = 0, 0
    for position in range(0, len(content) - max_length, 50):
        window = lowered[position: position + max_length]
        matches = sum(1 for term in terms if term in window)
        if matches > best_matches:
            best_position, best_matches = position, matches

    excerpt = content[best_position: best_position + max_length]
    if best_position > 0:
        first_space = excerpt.find(" ")
        if first_space > 0:
            excerpt = excerpt[first_space + 1:]
        excerpt = "..." + excerpt
    if best_position + max_length < len(content):
        last_space = excerpt.rfind(" ")
        if last_space > 0:
            excerpt = excerpt[:last_space]
        excerpt = excerpt + "..."
    return excerpt


def generate_highlights(content: str, query: str) -> list[str]:
    """Whole-word occurrences of query terms in content, as written in content, without duplicates."""
    highlights: list[str] = []
    for term in _query_terms(query):
        matches = re.findall(rf"\b{re.escape(term)}\b", content, flags=re.IGNORECASE)
        highlights.extend(matches[:HIGHLIGHTS_PER_TERM])
    return list(dict.fromkeys(highlights))
