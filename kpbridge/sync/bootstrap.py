"""Makes sure the external connection and its schema exist before items are pushed."""

from __future__ import annotations

import logging
from typing import Optional

from kpbridge.config import ConnectorOptions
from kpbridge.errors import ConfigurationError, GraphApiError
from kpbridge.integrations.graph_client import GraphGateway
from kpbridge.models.schema import PREDEFINED_SCHEMA, Schema, schema_matches
from kpbridge.sync.cancel import CancelToken, check

logger = logging.getLogger(__name__)

CONNECTION_DESCRIPTION = "Publishes roXtra documents to Microsoft 365 Search"


def connection_name(connection_id: str) -> str:
    return f"roXtra AiHub Connector ({connection_id})"


class ConnectionBootstrapper:
    """Ensures the Graph connection and the predefined schema.

    Graph refuses item writes until a schema is registered, so every
    operation that touches items runs ``ensure_connection()`` first.
    """

    def __init__(self, graph: GraphGateway, options: ConnectorOptions, schema: Schema = PREDEFINED_SCHEMA):
        self._graph = graph
        self._options = options
        self._schema = schema

    def _connection_id(self) -> str:
        if not self._options.connection_id or not self._options.connection_id.strip():
            raise ConfigurationError("GRAPH_EXTERNAL_CONNECTION_ID must be configured")
        return self._options.connection_id

    def initialize(self, cancel: Optional[CancelToken] = None) -> None:
        connection_id = self._connection_id()
        logger.info(f"Initializing external connection {connection_id}")
        self.ensure_connection(cancel)
        self.ensure_schema(cancel)
        logger.info(f"External connection {connection_id} initialized")

    def ensure_connection(self, cancel: Optional[CancelToken] = None) -> None:
        check(cancel)
        connection_id = self._connection_id()
        try:
            if self._graph.get_connection() is not None:
                return
        except GraphApiError as e:
            if not e.is_not_found:
                raise

        check(cancel)
        try:
            self._graph.create_connection(connection_name(connection_id), CONNECTION_DESCRIPTION)
            logger.info(f"Created external connection {connection_id}")
        except GraphApiError as e:
            if not e.is_conflict:
                logger.error(f"Failed to create external connection {connection_id}: {e}")
                raise
            logger.info(f"External connection {connection_id} already exists (concurrent create)")

        self.ensure_schema(cancel)

    def ensure_schema(self, cancel: Optional[CancelToken] = None) -> None:
        check(cancel)
        connection_id = self._connection_id()
        existing: Optional[Schema]
        try:
            existing = self._graph.get_schema()
        except GraphApiError as e:
            if not e.is_not_found:
                raise
            existing = None

        if existing is not None and schema_matches(existing, self._schema):
            logger.info(f"Schema of connection {connection_id} is up to date")
            return

        check(cancel)
        try:
            self._graph.create_or_update_schema(self._schema)
        except GraphApiError as e:
            if not e.is_conflict:
                raise
            logger.info(f"Schema for {connection_id} already exists (concurrent create)")
            return
        if existing is None:
            logger.info(f"Created schema for connection {connection_id}")
        else:
            logger.info(f"Replaced schema of connection {connection_id} with the predefined schema")
