import hashlib
import math
import re

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

_WORD = re.compile(r"\w+", re.UNICODE)


class EmbedClientMemory(EmbedClientInterface):
    """Offline embeddings: signed feature hashing of lower-cased words, L2-normalised.

    Texts sharing words get a positive cosine similarity, texts without
    common words score 0. No semantic understanding, meant for demo mode
    and tests. Selected with EMBED_ENGINE=memory.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_default_model(self) -> str:
        return "feature-hashing"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def _get_auth_header(self) -> dict:
        return {}

    def _get_base_url(self) -> str:
        return "http://memory.local"

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def get_endpoint_embedding(self) -> str:
        return ""

    def get_embed_payload(self, text: str) -> dict:
        return {"input": text}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        return self.hash_embed(response_data["input"])

    def hash_embed(self, text: str) -> list[float]:
        vector = [0.0] * self.embed_vector_size
        for word in _WORD.findall(text.lower()):
            digest = hashlib.blake2b(word.encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.embed_vector_size
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    async def _do_provider_embed(self, text: str) -> list[float]:
        return self.extract_embedding_from_response(self.get_embed_payload(text))

    async def do_healthcheck(self):
        return None
