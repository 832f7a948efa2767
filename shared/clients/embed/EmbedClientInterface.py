from abc import abstractmethod
import asyncio

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.exceptions.RetrievalErrors import EmbeddingDimensionMismatch, EmbeddingFailed

from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    """Turns one text into one fixed-length vector.

    Model identity and vector size are fixed for the process lifetime;
    changing either requires re-ingesting every document.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=self._get_default_model())
        self.embed_model_max_chars = helper_config.get_int_val(f"{self.get_client_type().upper()}_MODEL_MAX_CHARS", default=30000, minimum=1)
        self.embed_vector_size = helper_config.get_int_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=1536, minimum=1)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    def get_vector_size(self) -> int:
        """
        Returns the dimension every embedding of this client has, used as collection vector size.
        """
        return self.embed_vector_size

    def get_distance(self) -> str:
        """
        Returns the distance metric the vectors are compared with, e.g. "Cosine".
        """
        return self.embed_distance

    @abstractmethod
    def _get_default_model(self) -> str:
        """
        Returns the model used when EMBED_MODEL is not set.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/embeddings")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, text: str) -> dict:
        """Build the backend-specific request body for embedding a single text.

        Args:
            text (str): The already truncated text.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": "..."}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        """Extract the single embedding vector from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValueError: If the response does not contain an embedding.
        """
        pass

    def truncate(self, text: str) -> str:
        """Cut text to the configured character budget, keeping the prefix.

        Keeps requests under the provider's token ceiling. Identical input
        always yields the identical prefix.

        Args:
            text (str): The raw text.

        Returns:
            str: At most embed_model_max_chars characters from the start of text.
        """
        if len(text) <= self.embed_model_max_chars:
            return text
        self.logging.debug("Truncating embedding input from %d to %d characters.", len(text), self.embed_model_max_chars)
        return text[: self.embed_model_max_chars]

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_provider_embed(self, text: str) -> list[float]:
        """Send one embedding request to the provider.

        Args:
            text (str): The truncated text.

        Returns:
            list[float]: The raw vector.

        Raises:
            EmbeddingFailed: On transport errors, non-200 status or malformed responses.
        """
        try:
            response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=self.get_embed_payload(text))
        except httpx.HTTPError as exc:
            raise EmbeddingFailed(exc) from exc
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise EmbeddingFailed(f"provider answered with status {response.status_code}")
        try:
            return self.extract_embedding_from_response(response.json())
        except ValueError as exc:
            raise EmbeddingFailed(exc) from exc

    async def embed_text(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text (str): Any text; inputs above the character budget are truncated silently.

        Returns:
            list[float]: A vector of exactly get_vector_size() floats.

        Raises:
            EmbeddingFailed: If the provider fails.
            EmbeddingDimensionMismatch: If the vector has the wrong dimension.
        """
        vector = await self._do_provider_embed(self.truncate(text))
        if len(vector) != self.embed_vector_size:
            raise EmbeddingDimensionMismatch(self.embed_vector_size, len(vector))
        return vector

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts with one concurrent request per text.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            list[list[float]]: Vectors in the same order as texts, regardless of completion order.

        Raises:
            EmbeddingFailed: If any single request fails.
        """
        return list(await asyncio.gather(*[self.embed_text(text) for text in texts]))
