"""Unit tests for the Qdrant vector store client."""

import json

import httpx
import pytest

from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.memory.RAGClientMemory import RAGClientMemory
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.exceptions.RetrievalErrors import VectorStoreUnavailable


@pytest.fixture
def qdrant_env(monkeypatch):
    monkeypatch.setenv("RAG_QDRANT_BASE_URL", "http://qdrant.test:6333")
    monkeypatch.setenv("RAG_QDRANT_API_KEY", "qdrant-secret")


class RecordingQdrant:
    """Answers every request with a fixed response and keeps the requests."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


async def _booted(helper_config, handler) -> RAGClientQdrant:
    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    return client


class TestRequests:
    @pytest.mark.asyncio
    async def test_create_collection(self, helper_config, qdrant_env) -> None:
        qdrant = RecordingQdrant(httpx.Response(200, json={"result": True, "status": "ok"}))
        client = await _booted(helper_config, qdrant)
        try:
            created = await client.do_create_collection("tala_admin_knowledge", vector_size=1536, distance="Cosine")
        finally:
            await client.close()

        assert created is True
        request = qdrant.requests[0]
        assert request.method == "PUT"
        assert str(request.url) == "http://qdrant.test:6333/collections/tala_admin_knowledge"
        assert request.headers["api-key"] == "qdrant-secret"
        assert json.loads(request.content)["vectors"] == {"size": 1536, "distance": "Cosine"}

    @pytest.mark.asyncio
    async def test_upsert_waits_for_durability(self, helper_config, qdrant_env) -> None:
        qdrant = RecordingQdrant(httpx.Response(200, json={"result": {"status": "completed"}, "status": "ok"}))
        points = [{"id": "a", "vector": [0.1, 0.2], "payload": {"content": "Kyoto"}}]
        client = await _booted(helper_config, qdrant)
        try:
            await client.do_upsert_points("tala_user_1_knowledge", points)
        finally:
            await client.close()

        request = qdrant.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/collections/tala_user_1_knowledge/points"
        assert request.url.params["wait"] == "true"
        assert json.loads(request.content) == {"points": points}

    @pytest.mark.asyncio
    async def test_search_parses_hits(self, helper_config, qdrant_env) -> None:
        qdrant = RecordingQdrant(httpx.Response(200, json={
            "result": [
                {"id": "p1", "version": 3, "score": 0.91, "payload": {"content": "Kyoto temples"}},
                {"id": 7, "version": 3, "score": 0.4, "payload": None},
            ],
            "status": "ok",
        }))
        client = await _booted(helper_config, qdrant)
        try:
            search_filter = client.get_equality_filter({"metadata.folderId": "f1"})
            hits = await client.do_search("tala_admin_knowledge", [0.1, 0.2], limit=15, filter=search_filter)
        finally:
            await client.close()

        assert [(h.id, h.score) for h in hits] == [("p1", 0.91), ("7", 0.4)]
        assert hits[0].payload == {"content": "Kyoto temples"}
        assert hits[1].payload == {}
        body = json.loads(qdrant.requests[0].content)
        assert body["limit"] == 15
        assert body["with_payload"] is True
        assert body["filter"] == {"must": [{"key": "metadata.folderId", "match": {"value": "f1"}}]}

    @pytest.mark.asyncio
    async def test_count(self, helper_config, qdrant_env) -> None:
        qdrant = RecordingQdrant(httpx.Response(200, json={"result": {"count": 12}, "status": "ok"}))
        client = await _booted(helper_config, qdrant)
        try:
            assert await client.do_count("tala_admin_knowledge") == 12
        finally:
            await client.close()

        assert json.loads(qdrant.requests[0].content) == {"exact": True}


class TestAlreadyExists:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(409, json={"status": {"error": "Wrong input: Collection `x` already exists!"}}),
        httpx.Response(400, json={"status": {"error": "Wrong input: Collection `x` already exists!"}}),
    ])
    async def test_existing_collection_is_not_an_error(self, helper_config, qdrant_env, response) -> None:
        client = await _booted(helper_config, RecordingQdrant(response))
        try:
            assert await client.do_create_collection("x", vector_size=4) is False
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_other_rejection_raises(self, helper_config, qdrant_env) -> None:
        client = await _booted(helper_config, RecordingQdrant(httpx.Response(400, json={"status": {"error": "bad vector size"}})))
        try:
            with pytest.raises(VectorStoreUnavailable):
                await client.do_create_collection("x", vector_size=0)
        finally:
            await client.close()


class TestFailures:
    @pytest.mark.asyncio
    async def test_error_status_is_wrapped(self, helper_config, qdrant_env) -> None:
        client = await _booted(helper_config, RecordingQdrant(httpx.Response(500, text="boom")))
        try:
            with pytest.raises(VectorStoreUnavailable) as exc_info:
                await client.do_search("tala_admin_knowledge", [0.1], limit=5)
        finally:
            await client.close()

        assert exc_info.value.collection == "tala_admin_knowledge"
        assert "500" in exc_info.value.message
        assert "qdrant-secret" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, helper_config, qdrant_env) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = await _booted(helper_config, handler)
        try:
            with pytest.raises(VectorStoreUnavailable) as exc_info:
                await client.do_get_collections()
        finally:
            await client.close()

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_missing_base_url_is_rejected(self, helper_config) -> None:
        with pytest.raises(ValueError, match="RAG_QDRANT_BASE_URL"):
            RAGClientQdrant(helper_config=helper_config)


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_round_trip_through_memory_store(self, rag_client: RAGClientMemory) -> None:
        await rag_client.boot()
        try:
            await rag_client.do_healthcheck()
            await rag_client.do_create_collection("c", vector_size=2)
            await rag_client.do_upsert_points("c", [
                {"id": "east", "vector": [1.0, 0.0], "payload": {"documentId": "d1", "content": "east"}},
                {"id": "north", "vector": [0.0, 1.0], "payload": {"documentId": "d2", "content": "north"}},
                {"id": "north-east", "vector": [0.7, 0.7], "payload": {"documentId": "d2", "content": "ne"}},
            ])
            hits = await rag_client.do_search("c", [1.0, 0.1], limit=2)
            d2 = rag_client.get_equality_filter({"documentId": "d2"})
            assert await rag_client.do_count("c", d2) == 2
            await rag_client.do_delete_points_by_filter("c", d2)
            remaining = await rag_client.do_count("c")
            collections = await rag_client.do_get_collections()
        finally:
            await rag_client.close()

        assert [h.id for h in hits] == ["east", "north-east"]
        assert hits[0].score > hits[1].score
        assert remaining == 1
        assert collections == ["c"]

    @pytest.mark.asyncio
    async def test_wrong_dimension_is_rejected(self, rag_client: RAGClientMemory) -> None:
        await rag_client.boot()
        try:
            await rag_client.do_create_collection("c", vector_size=3)
            with pytest.raises(VectorStoreUnavailable):
                await rag_client.do_upsert_points("c", [{"id": "a", "vector": [1.0], "payload": {}}])
        finally:
            await rag_client.close()

    @pytest.mark.asyncio
    async def test_search_in_missing_collection_raises(self, rag_client: RAGClientMemory) -> None:
        await rag_client.boot()
        try:
            with pytest.raises(VectorStoreUnavailable):
                await rag_client.do_search("missing", [1.0], limit=1)
        finally:
            await rag_client.close()


class TestRAGClientManager:
    def test_memory_engine(self, helper_config, monkeypatch) -> None:
        monkeypatch.setenv("RAG_ENGINE", "memory")
        assert isinstance(RAGClientManager(helper_config=helper_config).get_client(), RAGClientMemory)

    def test_qdrant_engine(self, helper_config, qdrant_env, monkeypatch) -> None:
        monkeypatch.setenv("RAG_ENGINE", "Qdrant")
        client = RAGClientManager(helper_config=helper_config).get_client()
        assert type(client) is RAGClientQdrant
        assert client.get_engine_name() == "qdrant"
