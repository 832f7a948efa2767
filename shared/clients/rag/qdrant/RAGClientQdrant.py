from typing import Any
from urllib.parse import quote

import httpx
from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.SearchHit import SearchHit
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        defaults = {config.env_key: config.default for config in self._get_required_config()}
        self._base_url = self.get_config_val("BASE_URL", default=defaults["BASE_URL"], val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=defaults["API_KEY"], val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default="", secret=True),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collections(self) -> str:
        return "/collections"

    def _get_endpoint_collection(self, collection: str) -> str:
        return f"/collections/{quote(collection, safe='')}"

    def _get_endpoint_payload_index(self, collection: str) -> str:
        return f"{self._get_endpoint_collection(collection)}/index"

    def _get_endpoint_points(self, collection: str) -> str:
        return f"{self._get_endpoint_collection(collection)}/points"

    def _get_endpoint_search(self, collection: str) -> str:
        return f"{self._get_endpoint_collection(collection)}/points/search"

    def _get_endpoint_delete_points(self, collection: str) -> str:
        return f"{self._get_endpoint_collection(collection)}/points/delete"

    def _get_endpoint_count(self, collection: str) -> str:
        return f"{self._get_endpoint_collection(collection)}/points/count"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {
            "vectors": {"size": vector_size, "distance": distance},
            "optimizers_config": {"default_segment_number": 2},
            "replication_factor": 1,
        }

    def get_payload_index_payload(self, field: str, schema: str) -> dict:
        return {"field_name": field, "field_schema": schema}

    def get_search_payload(self, vector: list[float], limit: int, filter: dict | None = None) -> dict:
        payload = {
            "vector": vector,
            "limit": limit,
            "with_payload": True,
            "with_vector": False,
        }
        if filter is not None:
            payload["filter"] = filter
        return payload

    def get_equality_filter(self, conditions: dict[str, Any]) -> dict:
        return {"must": [{"key": key, "match": {"value": value}} for key, value in conditions.items()]}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_collection_names(self, raw_response: dict) -> list[str]:
        collections = raw_response.get("result", {}).get("collections", [])
        return [c["name"] for c in collections if "name" in c]

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        return [
            SearchHit(id=str(hit.get("id")), score=float(hit.get("score", 0.0)), payload=hit.get("payload") or {})
            for hit in raw_response.get("result", [])
        ]

    def is_already_exists_response(self, response: httpx.Response) -> bool:
        # qdrant answers 409 since 1.x, older releases used 400 with the same message
        if response.status_code == 409:
            return True
        return response.status_code == 400 and "already exists" in response.text
