"""Graph token manager — client-credentials token acquisition and refresh.

The connector runs unattended, so it authenticates as the app registration
(OAuth2 client-credentials flow) and caches the token until shortly before
it expires.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import requests

from kpbridge.config import GraphCredentials, get_graph_credentials

logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"


@dataclass
class TokenInfo:
    """Stores token with expiration metadata."""
    token: str
    expires_at: float  # Unix timestamp

    def is_expired(self, buffer_seconds: int = 300) -> bool:
        """Check if token is expired or will expire within buffer."""
        return time.time() >= (self.expires_at - buffer_seconds)


class GraphTokenManager:
    """Manages the app-only Graph access token with automatic refresh.

    Usage:
        manager = GraphTokenManager()
        token = manager.get_access_token()
    """

    def __init__(self, credentials: Optional[GraphCredentials] = None, timeout: float = 30):
        self.credentials = credentials or get_graph_credentials()
        self.timeout = timeout
        self._lock = threading.Lock()
        self._token: Optional[TokenInfo] = None

    def get_access_token(self, force_refresh: bool = False) -> str:
        """Get the access token, refreshing if needed.

        Raises:
            RuntimeError: If the token endpoint does not return a token
        """
        with self._lock:
            if not force_refresh and self._token is not None and not self._token.is_expired():
                return self._token.token
            self._token = self._fetch_access_token()
            return self._token.token

    def _fetch_access_token(self) -> TokenInfo:
        logger.info("Fetching new Graph access token")
        resp = requests.post(
            self.credentials.token_url,
            data={
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()

        token = data.get("access_token")
        if not token:
            raise RuntimeError(f"Failed to get Graph token: {data.get('error_description') or data.get('error')}")

        expires_in = int(data.get("expires_in", 3599))
        return TokenInfo(token=token, expires_at=time.time() + expires_in)

    def invalidate(self) -> None:
        with self._lock:
            self._token = None

    def get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.get_access_token()}",
            "Content-Type": "application/json",
        }
