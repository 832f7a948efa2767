import httpx
from shared.clients.rag.memory.InMemoryQdrant import InMemoryQdrant
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class RAGClientMemory(RAGClientQdrant):
    """Fixture backend: the Qdrant engine wired to an in-process InMemoryQdrant.

    Selected with RAG_ENGINE=memory. Needs no server and no credentials.
    """

    def __init__(self, helper_config: HelperConfig, store: InMemoryQdrant | None = None):
        self.store = store or InMemoryQdrant()
        super().__init__(helper_config=helper_config)

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://memory.local"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        await super().boot(transport=transport or self.store.transport())
