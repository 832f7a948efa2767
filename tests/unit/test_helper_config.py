"""Unit tests for HelperConfig, logging setup and the service container."""

import logging

import httpx
import pytest

from services.ServiceContainer import ServiceContainer
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import LOGGER_NAME, ColorLogger, setup_logging


class TestHelperConfig:
    def test_defaults_apply_when_unset(self, helper_config: HelperConfig) -> None:
        assert helper_config.get_string_val("TALA_TEST_UNSET", default="x") == "x"
        assert helper_config.get_int_val("TALA_TEST_UNSET", default=5, minimum=1) == 5
        assert helper_config.get_bool_val("TALA_TEST_UNSET", default=False) is False

    def test_missing_required_value(self, helper_config: HelperConfig) -> None:
        with pytest.raises(ValueError, match="TALA_TEST_UNSET"):
            helper_config.get_string_val("TALA_TEST_UNSET")

    def test_int_bounds(self, helper_config: HelperConfig, monkeypatch) -> None:
        monkeypatch.setenv("TALA_TEST_INT", "0")
        with pytest.raises(ValueError, match=">= 1"):
            helper_config.get_int_val("TALA_TEST_INT", default=10, minimum=1)

        monkeypatch.setenv("TALA_TEST_INT", "2.5")
        with pytest.raises(ValueError, match="integer"):
            helper_config.get_int_val("TALA_TEST_INT", default=10)

    def test_list_values(self, helper_config: HelperConfig, monkeypatch) -> None:
        monkeypatch.setenv("TALA_TEST_LIST", "[a, b ,c]")
        assert helper_config.get_list_val("TALA_TEST_LIST") == ["a", "b", "c"]

        monkeypatch.setenv("TALA_TEST_LIST", "a,b")
        with pytest.raises(ValueError):
            helper_config.get_list_val("TALA_TEST_LIST")


class TestLogging:
    def test_setup_returns_color_logger(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("ROOT_DIR", str(tmp_path))

        logger = setup_logging()
        logger.info("Stored %d vectors", 3, color="green")

        assert isinstance(logger, ColorLogger)
        assert logger.name == LOGGER_NAME
        assert (tmp_path / "logs" / "app.log").exists()

    def test_color_is_passed_as_record_attribute(self, caplog) -> None:
        logger = ColorLogger(logging.getLogger("tala.tests.color"))

        with caplog.at_level(logging.INFO, logger="tala.tests.color"):
            logger.warning("careful", color="yellow")

        assert caplog.records[-1].color == "yellow"


class TestServiceContainer:
    def test_chunker_settings_from_env(self, helper_config, rag_client, embed_client, monkeypatch) -> None:
        monkeypatch.setenv("CHUNK_WINDOW_SIZE", "50")
        monkeypatch.setenv("CHUNK_OVERLAP", "10")

        container = ServiceContainer(helper_config=helper_config, rag_client=rag_client, embed_client=embed_client)

        assert (container.chunker.window_size, container.chunker.overlap) == (50, 10)

    @pytest.mark.asyncio
    async def test_failed_healthcheck_closes_clients(self, helper_config, embed_client, monkeypatch) -> None:
        monkeypatch.setenv("RAG_QDRANT_BASE_URL", "http://qdrant.test:6333")
        rag_client = RAGClientQdrant(helper_config=helper_config)

        async def unreachable_boot(transport=None) -> None:
            await RAGClientQdrant.boot(rag_client, transport=httpx.MockTransport(lambda request: httpx.Response(503)))

        monkeypatch.setattr(rag_client, "boot", unreachable_boot)
        container = ServiceContainer(helper_config=helper_config, rag_client=rag_client, embed_client=embed_client)

        with pytest.raises(Exception, match="failed with status 503"):
            await container.boot()

        assert rag_client._client is None
        assert embed_client._client is None
