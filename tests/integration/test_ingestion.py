"""Integration tests for the IngestionPipeline against the in-memory vector store."""

import pytest

from services.chunking.Chunker import Chunker
from services.ingestion.IngestionPipeline import IngestionPipeline, make_point_id
from shared.exceptions.RetrievalErrors import (
    EmbeddingDimensionMismatch,
    EmbeddingFailed,
    EmptyDocument,
    ExtractionFailed,
    UnsupportedMediaType,
    VectorStoreUnavailable,
)

USER_COLLECTION = "tala_user_u1_knowledge"
ADMIN_COLLECTION = "tala_admin_knowledge"


def _points(store, collection: str) -> list[dict]:
    return list(store.collections[collection]["points"].values())


class TestIngest:
    @pytest.mark.asyncio
    async def test_400_words_become_three_points(self, services, store, kyoto_text) -> None:
        result = await services.ingestion.ingest(
            buffer=kyoto_text.encode("utf-8"),
            media_type="text/plain",
            filename="kyoto.txt",
            owner_id="u1",
            is_admin=False,
        )

        assert result.chunks_stored == 3
        assert result.collection_name == USER_COLLECTION
        assert result.failed_indexes == []
        points = _points(store, USER_COLLECTION)
        assert sorted(p["payload"]["metadata"]["chunkIndex"] for p in points) == [0, 1, 2]
        assert all(len(p["vector"]) == 1536 for p in points)

    @pytest.mark.asyncio
    async def test_payload_layout(self, services, store) -> None:
        result = await services.ingestion.ingest(
            buffer=b"Kyoto has many temples",
            media_type="text/plain; charset=utf-8",
            filename="notes.txt",
            owner_id="u1",
            is_admin=False,
        )

        payload = _points(store, USER_COLLECTION)[0]["payload"]
        assert payload["documentId"] == result.document_id
        assert payload["content"] == "Kyoto has many temples"
        assert payload["metadata"] == {
            "title": "notes.txt",
            "category": "general",
            "chunkIndex": 0,
            "wordCount": 4,
            "folderId": None,
        }
        assert payload["document"]["fileType"] == "text/plain"
        assert payload["document"]["originalName"] == "notes.txt"
        assert payload["document"]["byteSize"] == 22
        assert payload["document"]["ownerId"] == "u1"
        assert payload["document"]["isAdminDocument"] is False

    @pytest.mark.asyncio
    async def test_admin_document_goes_to_admin_collection(self, services, store) -> None:
        result = await services.ingestion.ingest(
            buffer=b"Shared travel guide", media_type="text/plain", filename="guide.txt", owner_id="admin", is_admin=True,
        )

        assert result.collection_name == ADMIN_COLLECTION
        assert result.is_admin_document is True
        assert len(_points(store, ADMIN_COLLECTION)) == 1

    @pytest.mark.asyncio
    async def test_point_ids_derive_from_document_and_index(self, services, store, kyoto_text) -> None:
        result = await services.ingestion.ingest(
            buffer=kyoto_text.encode("utf-8"), media_type="text/plain", filename="kyoto.txt", owner_id="u1", is_admin=False,
        )

        stored_ids = set(store.collections[USER_COLLECTION]["points"])
        assert stored_ids == {make_point_id(result.document_id, index) for index in range(3)}

    @pytest.mark.asyncio
    async def test_identical_uploads_never_overwrite(self, services, store, kyoto_text) -> None:
        for _ in range(2):
            await services.ingestion.ingest(
                buffer=kyoto_text.encode("utf-8"), media_type="text/plain", filename="kyoto.txt", owner_id="u1", is_admin=False,
            )

        assert len(_points(store, USER_COLLECTION)) == 6

    @pytest.mark.asyncio
    async def test_retry_with_same_document_id_is_idempotent(self, services, store, kyoto_text) -> None:
        for _ in range(2):
            await services.ingestion.ingest(
                buffer=kyoto_text.encode("utf-8"), media_type="text/plain", filename="kyoto.txt",
                owner_id="u1", is_admin=False, document_id="doc-1",
            )

        assert len(_points(store, USER_COLLECTION)) == 3

    @pytest.mark.asyncio
    async def test_folder_tag_and_document_count(self, services, store) -> None:
        folder = await services.folder_service.create_folder("Japan", owner_id="u1")

        await services.ingestion.ingest(
            buffer=b"Kyoto temples", media_type="text/plain", filename="a.txt", owner_id="u1", is_admin=False, folder_id=folder.id,
        )

        assert _points(store, USER_COLLECTION)[0]["payload"]["metadata"]["folderId"] == folder.id
        assert (await services.folder_service.get_folder(folder.id)).document_count == 1

    @pytest.mark.asyncio
    async def test_embedding_runs_in_batches(self, helper_config, services, store, monkeypatch) -> None:
        pipeline = IngestionPipeline(
            helper_config=helper_config,
            extractor=services.extractor,
            chunker=Chunker(window_size=10, overlap=0),
            embed_client=services.embed_client,
            rag_client=services.rag_client,
            router=services.router,
        )
        batch_sizes: list[int] = []
        original = services.embed_client.embed_texts

        async def recording_embed_texts(texts: list[str]) -> list[list[float]]:
            batch_sizes.append(len(texts))
            return await original(texts)

        monkeypatch.setattr(services.embed_client, "embed_texts", recording_embed_texts)
        text = " ".join(f"w{i}" for i in range(250))

        result = await pipeline.ingest(buffer=text.encode("utf-8"), media_type="text/plain", filename="long.txt", owner_id="u1", is_admin=False)

        assert batch_sizes == [10, 10, 5]
        assert result.chunks_stored == 25


class TestIngestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("buffer", [b"", b"   \n\t  "])
    async def test_empty_document_stores_nothing(self, services, store, buffer: bytes) -> None:
        with pytest.raises(EmptyDocument) as exc_info:
            await services.ingestion.ingest(buffer=buffer, media_type="text/plain", filename="empty.txt", owner_id="u1", is_admin=False)

        assert exc_info.value.filename == "empty.txt"
        assert exc_info.value.status_code == 400
        assert _points(store, USER_COLLECTION) == []

    @pytest.mark.asyncio
    async def test_unsupported_media_type(self, services) -> None:
        with pytest.raises(UnsupportedMediaType):
            await services.ingestion.ingest(buffer=b"GIF89a", media_type="image/gif", filename="a.gif", owner_id="u1", is_admin=False)

    @pytest.mark.asyncio
    async def test_corrupt_file(self, services) -> None:
        with pytest.raises(ExtractionFailed):
            await services.ingestion.ingest(buffer=b"%PDF-broken", media_type="application/pdf", filename="a.pdf", owner_id="u1", is_admin=False)

    @pytest.mark.asyncio
    async def test_embedding_failure_stores_nothing(self, services, store, kyoto_text, monkeypatch) -> None:
        calls = 0
        original = services.embed_client.embed_texts

        async def failing_second_batch(texts: list[str]) -> list[list[float]]:
            nonlocal calls
            calls += 1
            if calls == 2:
                raise EmbeddingFailed("provider down")
            return await original(texts)

        monkeypatch.setattr(services.embed_client, "embed_texts", failing_second_batch)
        text = " ".join(f"w{i}" for i in range(3000))

        with pytest.raises(EmbeddingFailed):
            await services.ingestion.ingest(buffer=text.encode("utf-8"), media_type="text/plain", filename="big.txt", owner_id="u1", is_admin=False)

        assert _points(store, USER_COLLECTION) == []

    @pytest.mark.asyncio
    async def test_wrong_vector_size_stores_nothing(self, services, store, monkeypatch) -> None:
        async def short_vector(text: str) -> list[float]:
            return [1.0, 0.0]

        monkeypatch.setattr(services.embed_client, "_do_provider_embed", short_vector)

        with pytest.raises(EmbeddingDimensionMismatch) as exc_info:
            await services.ingestion.ingest(buffer=b"Kyoto temples", media_type="text/plain", filename="a.txt", owner_id="u1", is_admin=False)

        assert (exc_info.value.expected, exc_info.value.actual) == (1536, 2)
        assert _points(store, USER_COLLECTION) == []

    @pytest.mark.asyncio
    async def test_dropped_collection_is_recreated_after_failed_upsert(self, services, store) -> None:
        await services.ingestion.ingest(buffer=b"first", media_type="text/plain", filename="1.txt", owner_id="u1", is_admin=False)
        del store.collections[USER_COLLECTION]

        with pytest.raises(VectorStoreUnavailable):
            await services.ingestion.ingest(buffer=b"second", media_type="text/plain", filename="2.txt", owner_id="u1", is_admin=False)
        await services.ingestion.ingest(buffer=b"third", media_type="text/plain", filename="3.txt", owner_id="u1", is_admin=False)

        assert [p["payload"]["content"] for p in _points(store, USER_COLLECTION)] == ["third"]


class TestDeleteDocument:
    @pytest.mark.asyncio
    async def test_delete_removes_every_chunk(self, services, store, kyoto_text) -> None:
        kept = await services.ingestion.ingest(buffer=b"keep me", media_type="text/plain", filename="k.txt", owner_id="u1", is_admin=False)
        doomed = await services.ingestion.ingest(
            buffer=kyoto_text.encode("utf-8"), media_type="text/plain", filename="kyoto.txt", owner_id="u1", is_admin=False,
        )

        deleted = await services.ingestion.delete_document(doomed.document_id, owner_id="u1", is_admin=False)

        assert deleted == 3
        assert [p["payload"]["documentId"] for p in _points(store, USER_COLLECTION)] == [kept.document_id]

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_delete(self, services, store) -> None:
        result = await services.ingestion.ingest(buffer=b"private", media_type="text/plain", filename="p.txt", owner_id="u1", is_admin=False)

        assert await services.ingestion.delete_document(result.document_id, owner_id="u2", is_admin=False) == 0
        assert len(_points(store, USER_COLLECTION)) == 1

    @pytest.mark.asyncio
    async def test_unknown_document(self, services) -> None:
        assert await services.ingestion.delete_document("missing", owner_id="u1", is_admin=False) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("owner_id", [None, ""])
    async def test_missing_owner_never_deletes_admin_documents(self, services, store, owner_id) -> None:
        shared = await services.ingestion.ingest(
            buffer=b"Shared travel guide", media_type="text/plain", filename="guide.txt", owner_id="admin", is_admin=True,
        )

        deleted = await services.ingestion.delete_document(shared.document_id, owner_id=owner_id, is_admin=False)

        assert deleted == 0
        assert len(_points(store, ADMIN_COLLECTION)) == 1
