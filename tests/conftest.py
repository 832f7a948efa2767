"""Shared pytest fixtures for the retrieval test suite."""

import logging

import pytest
import pytest_asyncio

from services.ServiceContainer import ServiceContainer
from shared.clients.embed.memory.EmbedClientMemory import EmbedClientMemory
from shared.clients.rag.memory.InMemoryQdrant import InMemoryQdrant
from shared.clients.rag.memory.RAGClientMemory import RAGClientMemory
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

_CONFIG_KEYS = [
    "RAG_ENGINE", "EMBED_ENGINE",
    "RAG_QDRANT_BASE_URL", "RAG_QDRANT_API_KEY",
    "EMBED_OPENAI_BASE_URL", "EMBED_OPENAI_API_KEY",
    "EMBED_MODEL", "EMBED_MODEL_MAX_CHARS", "EMBED_VECTOR_SIZE", "EMBED_DISTANCE",
    "RAG_ADMIN_COLLECTION", "RAG_USER_COLLECTION_PREFIX", "RAG_USER_COLLECTION_SUFFIX",
    "CHUNK_WINDOW_SIZE", "CHUNK_OVERLAP", "INGEST_BATCH_SIZE",
    "SEARCH_LIMIT", "SEARCH_SCORE_THRESHOLD", "SEARCH_TIMEOUT",
    "FOLDER_STORE_PATH", "APP_API_KEY", "UPLOAD_MAX_BYTES", "BOOT_HEALTHCHECK",
]


# ---------------------------------------------------------------------------
# Text fixtures
# ---------------------------------------------------------------------------


def numbered_words(count: int, start: int = 0) -> list[str]:
    """Distinct filler words w0, w1, ... that never collide with query terms."""
    return [f"w{i}" for i in range(start, start + count)]


def kyoto_document() -> str:
    """400 words; words 160..199 alternate "kyoto" and "temples".

    With window 150 and overlap 25 the text yields three chunks (words
    0-150, 125-275, 250-400) and only the middle one contains the block.
    """
    words = numbered_words(400)
    for position in range(160, 200):
        words[position] = "kyoto" if position % 2 == 0 else "temples"
    return " ".join(words)


@pytest.fixture
def kyoto_text() -> str:
    return kyoto_document()


# ---------------------------------------------------------------------------
# Configuration and clients
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate every test from configuration in the developer's environment."""
    for key in _CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("tala.tests")))


@pytest.fixture
def store() -> InMemoryQdrant:
    return InMemoryQdrant()


@pytest.fixture
def rag_client(helper_config, store) -> RAGClientMemory:
    return RAGClientMemory(helper_config=helper_config, store=store)


@pytest.fixture
def embed_client(helper_config) -> EmbedClientMemory:
    return EmbedClientMemory(helper_config=helper_config)


@pytest_asyncio.fixture
async def services(helper_config, rag_client, embed_client):
    """A booted container wired to the in-memory vector store and embedder."""
    container = ServiceContainer(helper_config=helper_config, rag_client=rag_client, embed_client=embed_client)
    await container.boot()
    yield container
    await container.close()
