from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent
from typing import Any
from shared.models.config import EnvConfig

from shared.helper.HelperConfig import HelperConfig

# HelperConfig getter per EnvConfig.val_type
_CONFIG_GETTERS = {
    "string": "get_string_val",
    "number": "get_number_val",
    "bool": "get_bool_val",
    "list": "get_list_val",
}


class ClientInterface(ABC):
    """Backend reached over HTTP: the vector store or an embedding provider.

    Settings are read from "<TYPE>_<ENGINE>_<KEY>" env vars declared by
    _get_required_config(); one httpx.AsyncClient lives from boot() to close().
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Resolve every declared setting once so a missing one fails at construction.

        Raises:
            ValueError: Naming the first env var that is unset or malformed.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """"rag" or "embed"; first part of every env key of this client."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Engine name as selected by <TYPE>_ENGINE, e.g. "Qdrant"."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings of this engine. A None default marks a setting as mandatory."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """"API_KEY" → "RAG_QDRANT_API_KEY" for the qdrant engine."""
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read one engine setting.

        Args:
            raw_key (str): Key without the type/engine prefix, e.g. "BASE_URL".
            default (Any): Used when the env var is unset; None makes it mandatory.
            val_type (str): One of "string", "number", "bool", "list".

        Raises:
            ValueError: If the value is missing or val_type is unknown.
        """
        getter = _CONFIG_GETTERS.get(val_type)
        if getter is None:
            raise ValueError(f"Unsupported config value type '{val_type}' for {self._get_config_key_name(raw_key)}.")
        return getattr(self._helper_config, getter)(self._get_config_key_name(raw_key), default=default)

    def describe_configuration(self) -> dict[str, Any]:
        """Resolved settings keyed by full env var name, secrets shown as "***"."""
        described: dict[str, Any] = {}
        for config in self._get_required_config():
            value = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)
            if config.secret and value:
                value = "***"
            described[self._get_config_key_name(config.env_key)] = value
        return described

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers carrying the credential; {} when the engine runs without one."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """GET the health endpoint.

        Raises:
            Exception: If the backend does not answer with 2xx.
        """
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP client.

        Args:
            transport: Replaces the network, e.g. httpx.MockTransport.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)
        self.logging.debug(
            "Booted %s client '%s' with config %s",
            self.get_client_type(), self.get_engine_name(), self.describe_configuration(),
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to base URL + endpoint with the auth headers.

        Args:
            method: HTTP verb.
            content: Pre-encoded body; takes precedence over json.
            json: Body to serialise as JSON.
            params: Query string parameters.
            endpoint: Path below the base URL.
            additional_headers: Merged over the auth headers.
            raise_on_error: Raise instead of returning a non-2xx response.

        Raises:
            Exception: If boot() was not called, or on a non-2xx status with raise_on_error.
            httpx.HTTPError: On connection and timeout errors.
        """
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        path = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        url = f"{self._get_base_url().rstrip('/')}{path}"
        headers = {**self._get_auth_header(), **(additional_headers or {})}

        body: dict = {}
        if content is not None:
            body["content"] = content
        elif json is not None:
            body["json"] = json

        response = await self._client.request(method, url, headers=headers, params=params, timeout=self.timeout, **body)

        if raise_on_error and response.status_code >= 300:
            self.logging.error("Request to %s failed with status %d: %s", url, response.status_code, response.text[:500])
            raise Exception(f"Request to {url} failed with status {response.status_code}")
        return response
