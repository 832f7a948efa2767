from abc import abstractmethod
from typing import Any
import json

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.SearchHit import SearchHit
from shared.exceptions.RetrievalErrors import VectorStoreUnavailable

from shared.helper.HelperConfig import HelperConfig


class RAGClientInterface(ClientInterface):
    """Vector store client. Every request names its target collection explicitly,
    one client instance serves all tenant and admin collections."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collections(self) -> str:
        """
        Returns the endpoint path for listing all collections (e.g. "/collections").
        """
        pass

    @abstractmethod
    def _get_endpoint_collection(self, collection: str) -> str:
        """
        Returns the endpoint path for creating a collection (e.g. "/collections/my_col").
        """
        pass

    @abstractmethod
    def _get_endpoint_payload_index(self, collection: str) -> str:
        """
        Returns the endpoint path for creating a payload index (e.g. "/collections/my_col/index").
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self, collection: str) -> str:
        """
        Returns the endpoint path for points upsert requests (e.g. "/collections/my_col/points").
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self, collection: str) -> str:
        """
        Returns the endpoint path for vector similarity search (e.g. "/collections/my_col/points/search").
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self, collection: str) -> str:
        """
        Returns the endpoint path for deleting points by filter (e.g. "/collections/my_col/points/delete").
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self, collection: str) -> str:
        """
        Returns the endpoint path for counting points matching a filter (e.g. "/collections/my_col/points/count").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """
        Returns the backend-specific body for a create collection request.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors, e.g. "Cosine".
        """
        pass

    @abstractmethod
    def get_payload_index_payload(self, field: str, schema: str) -> dict:
        """
        Returns the backend-specific body for a payload index request.

        Args:
            field (str): Dotted payload path, e.g. "metadata.category".
            schema (str): Index type, e.g. "keyword" or "integer".
        """
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], limit: int, filter: dict | None = None) -> dict:
        """
        Returns the backend-specific body for a similarity search request.

        Args:
            vector (list[float]): The query vector.
            limit (int): Maximum number of candidates.
            filter (dict | None): Optional backend filter.
        """
        pass

    @abstractmethod
    def get_equality_filter(self, conditions: dict[str, Any]) -> dict:
        """
        Builds a backend filter requiring every dotted payload key to equal its value.

        Args:
            conditions (dict[str, Any]): e.g. {"metadata.folderId": "f1"}.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_collection_names(self, raw_response: dict) -> list[str]:
        """
        Extracts the collection names from a raw list collections response.
        """
        pass

    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts the scored candidates from a raw search response, in backend order.
        """
        pass

    @abstractmethod
    def is_already_exists_response(self, response: httpx.Response) -> bool:
        """
        Returns True if a failed create collection response means the collection already exists.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_store_request(self, collection: str | None, **kwargs) -> httpx.Response:
        """Send a request and convert transport errors and non-2xx answers into VectorStoreUnavailable.

        Args:
            collection (str | None): The collection the request targets, for the error context.
            **kwargs: Forwarded to do_request().

        Returns:
            httpx.Response: The successful response.

        Raises:
            VectorStoreUnavailable: On any failure.
        """
        try:
            response = await self.do_request(**kwargs)
        except httpx.HTTPError as exc:
            raise VectorStoreUnavailable(collection, f"{type(exc).__name__}: {exc}", cause=exc) from exc
        if response.status_code >= 300:
            raise VectorStoreUnavailable(collection, f"status {response.status_code}: {response.text[:200]}")
        return response

    async def do_get_collections(self) -> list[str]:
        """List the names of all collections in the store.

        Returns:
            list[str]: Collection names.
        """
        resp = await self._do_store_request(None, method="GET", endpoint=self._get_endpoint_collections())
        return self.extract_collection_names(resp.json())

    async def do_collection_exists(self, collection: str) -> bool:
        """Check whether a collection exists.

        Args:
            collection (str): The collection name.

        Returns:
            bool: True if the collection is listed by the store.
        """
        return collection in await self.do_get_collections()

    async def do_create_collection(self, collection: str, vector_size: int, distance: str = "Cosine") -> bool:
        """Create a collection.

        Args:
            collection (str): The collection name.
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.

        Returns:
            bool: True if created, False if the store reports that it already exists.

        Raises:
            VectorStoreUnavailable: If the store rejects the request for any other reason.
        """
        try:
            response = await self.do_request(
                method="PUT",
                json=self.get_create_collection_payload(vector_size, distance),
                endpoint=self._get_endpoint_collection(collection),
            )
        except httpx.HTTPError as exc:
            raise VectorStoreUnavailable(collection, f"{type(exc).__name__}: {exc}", cause=exc) from exc
        if response.status_code < 300:
            return True
        if self.is_already_exists_response(response):
            self.logging.info("Collection '%s' was created concurrently, treating as existing.", collection)
            return False
        raise VectorStoreUnavailable(collection, f"status {response.status_code}: {response.text[:200]}")

    async def do_create_payload_index(self, collection: str, field: str, schema: str) -> None:
        """Create a secondary payload index.

        Args:
            collection (str): The collection name.
            field (str): Dotted payload path.
            schema (str): Index type.
        """
        await self._do_store_request(
            collection,
            method="PUT",
            json=self.get_payload_index_payload(field, schema),
            params={"wait": "true"},
            endpoint=self._get_endpoint_payload_index(collection),
        )

    async def do_upsert_points(self, collection: str, points: list[dict[str, Any]], wait: bool = True) -> None:
        """Upsert points into a collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists.

        Args:
            collection (str): The collection name.
            points (list[dict[str, Any]]): The points to upsert.
            wait (bool): Only return once the points are durable and queryable.
        """
        await self._do_store_request(
            collection,
            method="PUT",
            content=json.dumps({"points": points}),
            params={"wait": "true" if wait else "false"},
            endpoint=self._get_endpoint_points(collection),
            additional_headers={"Content-Type": "application/json"},
        )

    async def do_search(self, collection: str, vector: list[float], limit: int, filter: dict | None = None) -> list[SearchHit]:
        """Run a vector similarity search.

        Args:
            collection (str): The collection name.
            vector (list[float]): The query vector.
            limit (int): Maximum number of candidates.
            filter (dict | None): Optional backend filter, see get_equality_filter().

        Returns:
            list[SearchHit]: Candidates in descending score order.
        """
        resp = await self._do_store_request(
            collection,
            method="POST",
            json=self.get_search_payload(vector, limit, filter),
            endpoint=self._get_endpoint_search(collection),
        )
        return self.extract_search_hits(resp.json())

    async def do_delete_points_by_filter(self, collection: str, filter: dict) -> None:
        """Delete all points matching the given filter.

        Args:
            collection (str): The collection name.
            filter (dict): The filter that identifies which points to delete.
        """
        await self._do_store_request(
            collection,
            method="POST",
            json={"filter": filter},
            params={"wait": "true"},
            endpoint=self._get_endpoint_delete_points(collection),
        )

    async def do_count(self, collection: str, filter: dict | None = None) -> int:
        """Count the points matching a filter.

        Args:
            collection (str): The collection name.
            filter (dict | None): Optional filter, None counts every point.

        Returns:
            int: Number of matching points.
        """
        body: dict = {"exact": True}
        if filter is not None:
            body["filter"] = filter
        resp = await self._do_store_request(
            collection,
            method="POST",
            json=body,
            endpoint=self._get_endpoint_count(collection),
        )
        return resp.json().get("result", {}).get("count", 0)
