"""
Central configuration loader.
Reads from environment variables (via .env); exposes frozen option objects.
NEVER logs secret values.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_REPO_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=str(_REPO_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Microsoft Graph
    GRAPH_TENANT_ID: str = Field(default="")
    GRAPH_CLIENT_ID: str = Field(default="")
    GRAPH_CLIENT_SECRET: str = Field(default="")
    GRAPH_EXTERNAL_CONNECTION_ID: str = Field(default="")
    GRAPH_USE_EXTERNAL_GROUP_MEMBERSHIP_WORKAROUND: bool = Field(default=False)
    GRAPH_API_BASE_URL: str = "https://graph.microsoft.com/v1.0"
    GRAPH_LOGIN_BASE_URL: str = "https://login.microsoftonline.com"

    # Source document system
    ROXTRA_URL: str = Field(default="")

    # Webhooks
    WEBHOOK_API_KEY: Optional[str] = Field(default=None)

    # Database
    DATABASE_PATH: Path = Field(default=_REPO_ROOT / "data" / "connector.db")

    # HTTP
    HTTP_TIMEOUT_SECONDS: float = Field(default=60.0)
    RETRY_MAX_ATTEMPTS: int = Field(default=3)
    RETRY_BACKOFF_FACTOR: int = Field(default=2)

    # API Server
    SERVER_HOST: str = Field(default="0.0.0.0")
    SERVER_PORT: int = Field(default=8000)
    SERVER_RELOAD: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# ---------------------------------------------------------------------------
# Options consumed by the sync core
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ConnectorOptions:
    connection_id: str
    source_base_url: str
    use_membership_workaround: bool = False


def get_connector_options(settings: Optional[Settings] = None) -> ConnectorOptions:
    s = settings or get_settings()
    return ConnectorOptions(
        connection_id=s.GRAPH_EXTERNAL_CONNECTION_ID,
        source_base_url=s.ROXTRA_URL,
        use_membership_workaround=s.GRAPH_USE_EXTERNAL_GROUP_MEMBERSHIP_WORKAROUND,
    )


# ---------------------------------------------------------------------------
# Graph credentials
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GraphCredentials:
    tenant_id: str
    client_id: str
    client_secret: str
    api_base_url: str = "https://graph.microsoft.com/v1.0"
    login_base_url: str = "https://login.microsoftonline.com"

    @property
    def token_url(self) -> str:
        return f"{self.login_base_url.rstrip('/')}/{self.tenant_id}/oauth2/v2.0/token"


def get_graph_credentials(settings: Optional[Settings] = None) -> GraphCredentials:
    s = settings or get_settings()
    missing = [
        key for key in ("GRAPH_TENANT_ID", "GRAPH_CLIENT_ID", "GRAPH_CLIENT_SECRET")
        if not getattr(s, key)
    ]
    if missing:
        raise EnvironmentError(f"Missing required environment variable(s): {', '.join(missing)}")
    return GraphCredentials(
        tenant_id=s.GRAPH_TENANT_ID,
        client_id=s.GRAPH_CLIENT_ID,
        client_secret=s.GRAPH_CLIENT_SECRET,
        api_base_url=s.GRAPH_API_BASE_URL,
        login_base_url=s.GRAPH_LOGIN_BASE_URL,
    )


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def get_db_path() -> Path:
    return get_settings().DATABASE_PATH
