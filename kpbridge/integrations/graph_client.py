"""
Microsoft Graph external connectors API client
"""
from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Optional, Protocol

import requests

from kpbridge.errors import GraphApiError
from kpbridge.integrations.graph_auth import GraphTokenManager
from kpbridge.models.item import ExternalItem, ItemProperties
from kpbridge.models.schema import Schema
from kpbridge.models.source import ConnectorIdentity

logger = logging.getLogger(__name__)


class GraphGateway(Protocol):
    """Operations the sync core needs from the external platform.

    Not-found and conflict are reported as ``GraphApiError`` with
    ``is_not_found`` / ``is_conflict`` set.
    """

    connection_id: str

    def get_connection(self) -> dict[str, Any]: ...
    def create_connection(self, name: str, description: str) -> dict[str, Any]: ...
    def get_schema(self) -> Schema: ...
    def create_or_update_schema(self, schema: Schema) -> None: ...
    def create_external_group(self, group_id: str, display_name: str, description: str) -> None: ...
    def get_external_group(self, group_id: str) -> dict[str, Any]: ...
    def delete_external_group(self, group_id: str) -> None: ...
    def get_item(self, item_id: str) -> ExternalItem: ...
    def upsert_item(self, item_id: str, item: ExternalItem) -> None: ...
    def delete_item(self, item_id: str) -> None: ...
    def add_group_member(self, group_id: str, member: ConnectorIdentity) -> None: ...
    def remove_group_member(self, group_id: str, member_id: str) -> None: ...


def retry_on_failure(max_retries: int = 3, backoff_factor: int = 2):
    """Decorator for retrying throttled or transient API calls"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except GraphApiError as e:
                    if not e.is_transient or attempt == max_retries - 1:
                        raise
                    sleep_time = e.retry_after or backoff_factor ** attempt
                    logger.warning(f"Graph returned {e.status_code}. Retry {attempt + 1}/{max_retries} after {sleep_time}s...")
                    time.sleep(sleep_time)
                except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                    if attempt == max_retries - 1:
                        raise
                    sleep_time = backoff_factor ** attempt
                    logger.warning(f"Request failed: {e}. Retry {attempt + 1}/{max_retries} after {sleep_time}s...")
                    time.sleep(sleep_time)

            raise RuntimeError(f"Failed after {max_retries} retries")
        return wrapper
    return decorator


def _error_from_response(response: requests.Response) -> GraphApiError:
    code: Optional[str] = None
    message = ""
    try:
        err = response.json().get("error") or {}
        code = err.get("code")
        message = err.get("message") or ""
    except ValueError:
        message = response.text[:500]
    retry_after = response.headers.get("Retry-After", "")
    return GraphApiError(
        response.status_code, message, code, int(retry_after) if retry_after.isdigit() else None
    )


class GraphExternalClient:
    """Graph client bound to one external connection"""

    def __init__(
        self,
        connection_id: str,
        token_manager: Optional[GraphTokenManager] = None,
        base_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 60,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
        backoff_factor: int = 2,
    ):
        if not connection_id:
            raise ValueError("External connection id is required")
        self.connection_id = connection_id
        self.tokens = token_manager or GraphTokenManager()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._request = retry_on_failure(max(1, max_retries), backoff_factor)(self._send)

    # -- transport -------------------------------------------------------------

    def _connection_url(self, path: str = "") -> str:
        url = f"{self.base_url}/external/connections/{self.connection_id}"
        return f"{url}/{path}" if path else url

    def _send(self, method: str, url: str, body: Optional[dict[str, Any]] = None) -> Optional[dict[str, Any]]:
        response = self._session.request(
            method, url, json=body, headers=self.tokens.get_headers(), timeout=self.timeout,
        )
        if response.status_code == 401:
            self.tokens.invalidate()
        if not response.ok:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # -- connection ------------------------------------------------------------

    def get_connection(self) -> dict[str, Any]:
        return self._request("GET", self._connection_url()) or {}

    def create_connection(self, name: str, description: str) -> dict[str, Any]:
        logger.info(f"Creating external connection {self.connection_id}")
        payload = {"id": self.connection_id, "name": name, "description": description}
        return self._request("POST", f"{self.base_url}/external/connections", payload) or {}

    def delete_connection(self) -> None:
        logger.info(f"Deleting external connection {self.connection_id}")
        self._request("DELETE", self._connection_url())

    # -- schema ----------------------------------------------------------------

    def get_schema(self) -> Schema:
        return Schema.from_dict(self._request("GET", self._connection_url("schema")) or {})

    def create_or_update_schema(self, schema: Schema) -> None:
        logger.info(f"Registering schema for connection {self.connection_id}")
        self._request("PATCH", self._connection_url("schema"), schema.to_dict())

    # -- groups ----------------------------------------------------------------

    def create_external_group(self, group_id: str, display_name: str, description: str) -> None:
        logger.info(f"Creating external group {group_id}")
        payload = {"id": group_id, "displayName": display_name, "description": description}
        self._request("POST", self._connection_url("groups"), payload)

    def get_external_group(self, group_id: str) -> dict[str, Any]:
        return self._request("GET", self._connection_url(f"groups/{group_id}")) or {}

    def delete_external_group(self, group_id: str) -> None:
        logger.info(f"Deleting external group {group_id}")
        self._request("DELETE", self._connection_url(f"groups/{group_id}"))

    def add_group_member(self, group_id: str, member: ConnectorIdentity) -> None:
        logger.info(f"Adding member {member.id} to external group {group_id}")
        self._request("POST", self._connection_url(f"groups/{group_id}/members"), member.to_dict())

    def remove_group_member(self, group_id: str, member_id: str) -> None:
        logger.info(f"Removing member {member_id} from external group {group_id}")
        self._request("DELETE", self._connection_url(f"groups/{group_id}/members/{member_id}"))

    # -- items -----------------------------------------------------------------

    def get_item(self, item_id: str) -> ExternalItem:
        data = self._request("GET", self._connection_url(f"items/{item_id}")) or {}
        return ExternalItem.from_dict(data)

    def upsert_item(self, item_id: str, item: ExternalItem) -> None:
        """PUT the item. Parts of *item* left unset are carried over from the stored item."""
        try:
            existing: Optional[ExternalItem] = self.get_item(item_id)
        except GraphApiError as e:
            if not e.is_not_found:
                raise
            existing = None

        if existing is None:
            body = ExternalItem(id=item_id, content=item.content, properties=item.properties, acl=item.acl)
        else:
            properties = (item.properties or ItemProperties()).merged_over(
                existing.properties or ItemProperties()
            )
            body = ExternalItem(
                properties=properties,
                content=item.content if item.content is not None else existing.content,
                acl=item.acl if item.acl is not None else existing.acl,
            )

        logger.info(f"Upserting external item {item_id}")
        self._request("PUT", self._connection_url(f"items/{item_id}"), body.to_dict())

    def delete_item(self, item_id: str) -> None:
        logger.info(f"Deleting external item {item_id}")
        self._request("DELETE", self._connection_url(f"items/{item_id}"))
