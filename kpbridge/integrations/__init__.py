"""Integration modules"""
from .graph_auth import GraphTokenManager
from .graph_client import GraphExternalClient, GraphGateway

__all__ = ["GraphExternalClient", "GraphGateway", "GraphTokenManager"]
