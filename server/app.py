"""FastAPI web server receiving knowledge pool webhooks."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from kpbridge import __version__
from kpbridge.config import get_connector_options, get_graph_credentials, get_settings
from kpbridge.db.database import Database
from kpbridge.integrations.graph_auth import GraphTokenManager
from kpbridge.integrations.graph_client import GraphExternalClient
from kpbridge.sync.cancel import CancelToken
from kpbridge.sync.connector import KnowledgePoolConnector
from kpbridge.webhooks.auth import is_authorized
from kpbridge.webhooks.handler import WebhookHandler

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/v1/webhooks/events/receive"
DISCONNECT_POLL_SECONDS = 0.5

# Global service instances
_db: Optional[Database] = None
_connector: Optional[KnowledgePoolConnector] = None
_handler: Optional[WebhookHandler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup; a failing bootstrap aborts start-up."""
    global _db, _connector, _handler

    settings = get_settings()
    options = get_connector_options(settings)
    credentials = get_graph_credentials(settings)

    _db = Database(path=settings.DATABASE_PATH)
    _db.init()

    graph = GraphExternalClient(
        options.connection_id,
        token_manager=GraphTokenManager(credentials, timeout=settings.HTTP_TIMEOUT_SECONDS),
        base_url=credentials.api_base_url,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        max_retries=settings.RETRY_MAX_ATTEMPTS,
        backoff_factor=settings.RETRY_BACKOFF_FACTOR,
    )
    _connector = KnowledgePoolConnector(_db, graph, options)
    await run_in_threadpool(_connector.initialize)
    _handler = WebhookHandler(_connector, options.source_base_url, timeout=settings.HTTP_TIMEOUT_SECONDS)

    logger.info(f"Server started - DB: {settings.DATABASE_PATH}, connection: {options.connection_id}")
    yield

    logger.info("Server shutting down")
    _db.close()


app = FastAPI(
    title="Knowledge Pool Search Connector",
    description="Publishes knowledge pool documents to Microsoft 365 Search",
    version=__version__,
    lifespan=lifespan,
)


def get_webhook_handler() -> WebhookHandler:
    if _handler is None:
        raise HTTPException(status_code=503, detail="Connector not initialized")
    return _handler


def get_webhook_api_key() -> Optional[str]:
    return get_settings().WEBHOOK_API_KEY


@app.get("/api/status")
async def get_status():
    """Get system status."""
    options = get_connector_options()
    return {
        "status": "ok" if _handler is not None else "starting",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "connection_id": options.connection_id,
        "membership_workaround": options.use_membership_workaround,
    }


@app.post(WEBHOOK_PATH)
async def receive_event(
    request: Request,
    api_key: Optional[str] = Depends(get_webhook_api_key),
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    if not is_authorized(request.headers, api_key):
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "invalid_payload"})

    cancel = CancelToken()
    watcher = asyncio.create_task(cancel_on_disconnect(request, cancel))
    try:
        result = await run_in_threadpool(handler.handle, payload, dict(request.headers), cancel)
    finally:
        watcher.cancel()
    return JSONResponse(status_code=result.status_code, content=result.body)


async def cancel_on_disconnect(request: Request, cancel: CancelToken) -> None:
    """Cancel *cancel* once the event source drops the connection."""
    while not cancel.cancelled:
        if await request.is_disconnected():
            logger.warning("Webhook client disconnected; cancelling event processing")
            cancel.cancel()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
