from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single environment setting required by a client.

    Attributes:
        env_key (str): Key suffix of the environment variable, e.g. "BASE_URL" for "RAG_QDRANT_BASE_URL".
        val_type (str): Expected type of the value: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Fallback if the variable is not set. None marks the setting as required.
        secret (bool): True for credentials. Secret values are masked whenever the configuration is logged.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None
    secret: bool = False
