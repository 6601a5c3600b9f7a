#!/usr/bin/env python3
"""Initialize the mapping database, optionally bootstrapping the Graph connection too."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv

from kpbridge.db.database import Database


def main():
    parser = argparse.ArgumentParser(description="Initialize the database")
    parser.add_argument("--db-path", type=str, help="Override database path")
    parser.add_argument(
        "--bootstrap-graph", action="store_true",
        help="Also ensure the external connection and schema exist in Graph",
    )
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    db_path = Path(args.db_path) if args.db_path else None
    db = Database(path=db_path)
    db.init()
    print(f"Database initialized at: {db.path}")

    if args.bootstrap_graph:
        _bootstrap_graph()

    db.close()
    print("Done.")


def _bootstrap_graph():
    from kpbridge.config import get_connector_options, get_graph_credentials, get_settings
    from kpbridge.integrations.graph_auth import GraphTokenManager
    from kpbridge.integrations.graph_client import GraphExternalClient
    from kpbridge.sync.bootstrap import ConnectionBootstrapper

    settings = get_settings()
    options = get_connector_options(settings)
    credentials = get_graph_credentials(settings)
    graph = GraphExternalClient(
        options.connection_id,
        token_manager=GraphTokenManager(credentials),
        base_url=credentials.api_base_url,
        max_retries=settings.RETRY_MAX_ATTEMPTS,
        backoff_factor=settings.RETRY_BACKOFF_FACTOR,
    )
    ConnectionBootstrapper(graph, options).initialize()
    print(f"  Connection {options.connection_id} and schema are in place")


if __name__ == "__main__":
    main()
