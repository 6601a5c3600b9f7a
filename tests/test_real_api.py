"""
Real Microsoft Graph integration tests.
Run with: pytest tests/test_real_api.py --real-api -v

These tests create and clean up actual resources. Ensure:
1. .env has GRAPH_TENANT_ID, GRAPH_CLIENT_ID, GRAPH_CLIENT_SECRET and GRAPH_EXTERNAL_CONNECTION_ID
2. The app registration holds ExternalConnection.ReadWrite.OwnedBy and ExternalItem.ReadWrite.OwnedBy
"""
from __future__ import annotations

import uuid

import pytest
from dotenv import load_dotenv

load_dotenv()

from kpbridge.config import Settings, get_connector_options, get_graph_credentials
from kpbridge.db.database import Database
from kpbridge.db.group_repo import GroupMappingRepository
from kpbridge.errors import GraphApiError
from kpbridge.integrations.graph_auth import GraphTokenManager
from kpbridge.integrations.graph_client import GraphExternalClient
from kpbridge.sync.connector import KnowledgePoolConnector
from kpbridge.sync.ids import group_id_for


@pytest.fixture(scope="module")
def real_db(tmp_path_factory):
    """Create a test database for real API tests."""
    db_path = tmp_path_factory.mktemp("data") / "test_real.db"
    db = Database(path=db_path)
    db.init()
    yield db
    db.close()


@pytest.fixture(scope="module")
def graph():
    """Graph client bound to the configured tenant and connection."""
    settings = Settings()
    options = get_connector_options(settings)
    if not options.connection_id:
        pytest.skip("GRAPH_EXTERNAL_CONNECTION_ID required")
    try:
        credentials = get_graph_credentials(settings)
    except EnvironmentError as e:
        pytest.skip(str(e))

    return GraphExternalClient(
        options.connection_id,
        token_manager=GraphTokenManager(credentials),
        base_url=credentials.api_base_url,
    )


@pytest.fixture(scope="module")
def connector(real_db, graph):
    return KnowledgePoolConnector(real_db, graph, get_connector_options(Settings()))


@pytest.mark.real_api
class TestGraphRealAPI:
    """Connection bootstrap and external group lifecycle against a live tenant."""

    def test_initialize_is_idempotent(self, connector, graph):
        connector.initialize()
        connector.initialize()

        assert graph.get_connection()["id"] == graph.connection_id

    def test_pool_group_round_trip(self, connector, graph, real_db):
        """Create the external group for a throwaway pool, then remove it again."""
        pool_id = f"it-{uuid.uuid4()}"

        mapping = connector.handle_pool_created(pool_id)
        assert mapping.external_group_id == group_id_for(pool_id)
        assert graph.get_external_group(mapping.external_group_id)

        assert connector.handle_pool_removed(pool_id) == 0
        assert GroupMappingRepository(real_db).get_by_pool(pool_id) is None
        with pytest.raises(GraphApiError) as excinfo:
            graph.get_external_group(mapping.external_group_id)
        assert excinfo.value.is_not_found
