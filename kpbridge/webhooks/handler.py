"""Dispatches webhook events to the knowledge pool connector.

Each delivery is processed end to end before the response is produced; the
status code tells the document system whether to retry.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Mapping, Optional

import requests
from pydantic import ValidationError

from kpbridge.errors import DownloadNotAllowedError, GraphApiError, ItemConsistencyError
from kpbridge.models.source import SourceFile
from kpbridge.sync.cancel import CancelToken, OperationCancelled, check
from kpbridge.sync.connector import KnowledgePoolConnector
from kpbridge.utils.redact import redact, redact_headers
from kpbridge.webhooks import events as ev

logger = logging.getLogger(__name__)

PROBLEM_TITLE = "Failed to handle webhook"


@dataclass
class WebhookResult:
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def status_for(exc: BaseException) -> int:
    """HTTP status reported back to the event source for *exc*."""
    if isinstance(exc, PermissionError):
        return 403
    if isinstance(exc, ItemConsistencyError):
        return 409
    if isinstance(exc, ValueError):
        return 400
    if isinstance(exc, GraphApiError):
        # throttling stays visible; every other Graph fault is an upstream failure
        return exc.status_code if exc.status_code in (429, 503) else 502
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code
    # ConnectTimeout is both a Timeout and a ConnectionError
    if isinstance(exc, (requests.Timeout, OperationCancelled, TimeoutError)):
        return 504
    if isinstance(exc, requests.ConnectionError):
        return 503
    return 502


def problem(exc: BaseException) -> WebhookResult:
    status = status_for(exc)
    return WebhookResult(status, {"title": PROBLEM_TITLE, "status": status, "detail": redact(str(exc))})


class WebhookHandler:
    def __init__(
        self,
        connector: KnowledgePoolConnector,
        source_base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
    ):
        self._connector = connector
        self._source_base_url = source_base_url or ""
        self._session = session or requests.Session()
        self._timeout = timeout

    def handle(
        self,
        payload: Any,
        headers: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancelToken] = None,
    ) -> WebhookResult:
        raw = json.dumps(payload, default=str)[:2000]
        logger.info(f"Handling webhook. Headers: {redact_headers(headers or {})}. Payload: {raw}")

        if not isinstance(payload, dict):
            return WebhookResult(400, {"error": "invalid_payload"})

        type_value = payload.get("type")
        event_type = type_value.lower() if isinstance(type_value, str) else None
        if event_type not in ev.EVENT_MODELS:
            return WebhookResult(200, {"status": "received"})

        try:
            event = ev.parse_event(payload, event_type)
        except ValidationError as e:
            logger.error(f"Failed to deserialize {event_type}: {e}")
            return WebhookResult(400, {"error": "invalid_payload"})

        try:
            check(cancel)
            body = self._dispatch(event_type, event, cancel)
        except Exception as e:
            logger.exception(f"Failed to handle webhook. Type={event_type}")
            return problem(e)
        return WebhookResult(200, {"status": "processed", "type": event_type, **body})

    # -- dispatch --------------------------------------------------------------

    def _dispatch(self, event_type: str, event: ev.WebhookEvent, cancel: Optional[CancelToken]) -> dict[str, Any]:
        c = self._connector

        if event_type == ev.KNOWLEDGE_POOL_CREATED:
            c.handle_pool_created(event.knowledge_pool_id, cancel)
            return {"knowledgePoolId": event.knowledge_pool_id}

        if event_type == ev.KNOWLEDGE_POOL_REMOVED:
            c.handle_pool_removed(event.knowledge_pool_id, cancel)
            return {"knowledgePoolId": event.knowledge_pool_id}

        if event_type == ev.KNOWLEDGE_POOL_FILE_ADDED:
            logger.info(f"Received {event_type}: file={event.file_id}, pool={event.knowledge_pool_id}")
            with self.open_file(event, cancel) as file:
                c.handle_file_added(event.knowledge_pool_id, file, cancel)
            return {"fileId": event.file_id, "title": event.title}

        if event_type == ev.FILE_UPDATED:
            logger.info(f"Received {event_type}: file={event.file_id}")
            with self.open_file(event, cancel) as file:
                c.handle_file_updated(file, cancel)
            return {"fileId": event.file_id}

        if event_type == ev.KNOWLEDGE_POOL_FILE_REMOVED:
            c.handle_file_removed(event.knowledge_pool_id, event.file_id, cancel)
            return {"fileId": event.file_id, "knowledgePoolId": event.knowledge_pool_id}

        if event_type == ev.KNOWLEDGE_POOL_MEMBER_ADDED:
            c.handle_member_added(event.knowledge_pool_id, event.external_group_id, cancel)
            return self._member_body(event)

        if event_type == ev.KNOWLEDGE_POOL_MEMBER_REMOVED:
            c.handle_member_removed(event.knowledge_pool_id, event.external_group_id, cancel)
            return self._member_body(event)

        raise ValueError(f"Unknown event type: {event_type}")

    @staticmethod
    def _member_body(event: ev.WebhookEvent) -> dict[str, Any]:
        return {
            "knowledgePoolId": event.knowledge_pool_id,
            "roxtraGroupGid": str(event.roxtra_group_gid) if event.roxtra_group_gid else None,
            "externalGroupId": event.external_group_id,
        }

    # -- downloads -------------------------------------------------------------

    def is_allowed_download(self, url: str) -> bool:
        """Only URLs under the configured source base URL may be fetched."""
        base = self._source_base_url
        return bool(base) and url.lower().startswith(base.lower())

    @contextmanager
    def open_file(self, event: ev.WebhookEvent, cancel: Optional[CancelToken] = None) -> Generator[SourceFile, None, None]:
        """Source file for a file event, streaming its content when the event asks for it."""
        check(cancel)
        if not event.supported_for_knowledge_pools:
            yield SourceFile(event.file_id, event.title)
            return

        url = event.download_url
        if not url or not url.strip():
            raise ValueError("downloadUrl must be provided in the event payload")
        if not self.is_allowed_download(url):
            raise DownloadNotAllowedError(
                f"downloadUrl must start with the configured source base URL. Expected: {self._source_base_url}, Actual: {url}"
            )

        logger.info(f"Preparing content stream from {url} for file {event.file_id}")
        response = self._session.get(url, stream=True, timeout=self._timeout)
        try:
            response.raise_for_status()
            response.raw.decode_content = True
            logger.info(
                f"Prepared content stream for file {event.file_id}. "
                f"Length header: {response.headers.get('Content-Length', '(unknown)')}"
            )
            yield SourceFile(event.file_id, event.title, response.raw)
        finally:
            response.close()
