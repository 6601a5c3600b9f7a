"""API key check for webhook deliveries."""

from __future__ import annotations

import hmac
import logging
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
_BEARER = "bearer "


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def provided_api_key(headers: Mapping[str, str]) -> Optional[str]:
    """Key from ``X-Api-Key``, or else from an ``Authorization: Bearer`` header."""
    key = _header(headers, API_KEY_HEADER)
    if key is not None:
        return key
    auth = _header(headers, "authorization")
    if auth and auth.lower().startswith(_BEARER):
        return auth[len(_BEARER):]
    return None


def is_authorized(headers: Mapping[str, str], configured_key: Optional[str]) -> bool:
    if not configured_key or not configured_key.strip():
        logger.warning("Webhook API key is not configured; rejecting request")
        return False
    provided = provided_api_key(headers)
    if not provided or not provided.strip():
        return False
    return hmac.compare_digest(provided.encode("utf-8"), configured_key.encode("utf-8"))
