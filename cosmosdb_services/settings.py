import os
from functools import lru_cache
from typing import Dict, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DOTENV_PATH = os.environ.get(
    "DOTENV_PATH",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env")
)

load_dotenv(DOTENV_PATH)

ConsistencyLevel = Literal["Strong", "BoundedStaleness", "Session", "ConsistentPrefix", "Eventual"]


class CosmosDbSettings(BaseSettings):
    """
    Connection and container settings, read from AZURE_COSMOSDB_* variables.
    """
    model_config = SettingsConfigDict(
        env_prefix="AZURE_COSMOSDB_",
        env_file=DOTENV_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint: Optional[str] = None
    account: Optional[str] = None
    account_key: Optional[str] = None
    database: str
    # type name -> "container" or "database/container"
    containers: Dict[str, str] = Field(default_factory=dict)
    consistency_level: Optional[ConsistencyLevel] = None
    create_if_not_exists: bool = False
    default_partition_key_path: str = "/id"
    user_agent_suffix: Optional[str] = None

    @model_validator(mode="after")
    def _require_endpoint_or_account(self) -> "CosmosDbSettings":
        if not self.endpoint and not self.account:
            raise ValueError("AZURE_COSMOSDB_ENDPOINT or AZURE_COSMOSDB_ACCOUNT is required")
        if not self.default_partition_key_path.startswith("/"):
            raise ValueError("default_partition_key_path must start with '/'")
        return self

    @property
    def resolved_endpoint(self) -> str:
        if self.endpoint:
            return self.endpoint
        return f"https://{self.account}.documents.azure.com:443/"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=DOTENV_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_file: Optional[str] = None


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    cosmos: CosmosDbSettings = Field(default_factory=CosmosDbSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache()
def get_app_settings() -> AppSettings:
    """
    Loads the settings once per process.
    """
    return AppSettings()
