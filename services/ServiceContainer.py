"""Builds every pipeline component once from configuration.

The API lifespan and the ingest runner both construct one container at
startup and hand its services to their callers; nothing is a module-level
singleton. RAG_ENGINE / EMBED_ENGINE pick live or in-memory backends.
"""

from services.chunking.Chunker import DEFAULT_OVERLAP, DEFAULT_WINDOW_SIZE, Chunker
from services.collections.CollectionRouter import CollectionRouter
from services.extraction.TextExtractor import TextExtractor
from services.folders.FolderService import FolderService
from services.ingestion.IngestionPipeline import IngestionPipeline
from services.retrieval.RetrievalEngine import RetrievalEngine
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.helper.HelperConfig import HelperConfig


class ServiceContainer:
    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface | None = None,
        embed_client: EmbedClientInterface | None = None,
    ) -> None:
        self.config = helper_config
        self.logging = helper_config.get_logger()
        self.rag_client = rag_client or RAGClientManager(helper_config=helper_config).get_client()
        self.embed_client = embed_client or EmbedClientManager(helper_config=helper_config).get_client()

        self.extractor = TextExtractor(helper_config=helper_config)
        self.chunker = Chunker(
            window_size=helper_config.get_int_val("CHUNK_WINDOW_SIZE", default=DEFAULT_WINDOW_SIZE, minimum=1),
            overlap=helper_config.get_int_val("CHUNK_OVERLAP", default=DEFAULT_OVERLAP, minimum=0),
        )
        self.router = CollectionRouter(
            helper_config=helper_config,
            rag_client=self.rag_client,
            vector_size=self.embed_client.get_vector_size(),
            distance=self.embed_client.get_distance(),
        )
        self.folder_service = FolderService(helper_config=helper_config)
        self.ingestion = IngestionPipeline(
            helper_config=helper_config,
            extractor=self.extractor,
            chunker=self.chunker,
            embed_client=self.embed_client,
            rag_client=self.rag_client,
            router=self.router,
            folder_service=self.folder_service,
        )
        self.retrieval = RetrievalEngine(
            helper_config=helper_config,
            embed_client=self.embed_client,
            rag_client=self.rag_client,
            router=self.router,
        )

    async def boot(self, healthcheck: bool = True) -> None:
        """Open the long-lived HTTP clients, optionally verifying both backends answer.

        Raises:
            Exception: If a healthcheck fails. Already opened clients are closed again.
        """
        try:
            await self.embed_client.boot()
            await self.rag_client.boot()
            if healthcheck:
                await self.rag_client.do_healthcheck()
                await self.embed_client.do_healthcheck()
        except Exception:
            await self.close()
            raise
        self.logging.info(
            "Backends ready: vector store '%s', embeddings '%s' (%s, %d dims)",
            self.rag_client.get_engine_name(),
            self.embed_client.get_engine_name(),
            self.embed_client.embed_model,
            self.embed_client.get_vector_size(),
        )

    async def close(self) -> None:
        await self.embed_client.close()
        await self.rag_client.close()
