"""Reconciliation of knowledge pools into Graph external groups and items."""

from kpbridge.sync.bootstrap import ConnectionBootstrapper
from kpbridge.sync.cancel import CancelToken, OperationCancelled
from kpbridge.sync.connector import KnowledgePoolConnector
from kpbridge.sync.groups import GroupManager
from kpbridge.sync.ids import group_id_for, item_id_for
from kpbridge.sync.items import DetachOutcome, ItemReconciler
from kpbridge.sync.members import MembershipSynchronizer

__all__ = [
    "CancelToken", "ConnectionBootstrapper", "DetachOutcome", "GroupManager", "ItemReconciler",
    "KnowledgePoolConnector", "MembershipSynchronizer", "OperationCancelled",
    "group_id_for", "item_id_for",
]
