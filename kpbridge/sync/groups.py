"""Knowledge pool ↔ external group lifecycle."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from kpbridge.db.database import Database
from kpbridge.db.file_pool_repo import FilePoolRepository
from kpbridge.db.group_repo import GroupMappingRepository
from kpbridge.errors import GraphApiError
from kpbridge.integrations.graph_client import GraphGateway
from kpbridge.models.mapping import ExternalGroupMapping
from kpbridge.sync.cancel import CancelToken, check
from kpbridge.sync.ids import group_id_for

logger = logging.getLogger(__name__)

# (pool_id, file_id, cancel) -> anything; normally ItemReconciler.detach_file
DetachFn = Callable[[str, str, Optional[CancelToken]], object]


class GroupManager:
    def __init__(self, db: Database, graph: GraphGateway):
        self._db = db
        self._graph = graph
        self._groups = GroupMappingRepository(db)
        self._file_pools = FilePoolRepository(db)

    def resolve_group_id(self, pool_id: str) -> str:
        """Mapped group id, or the derived one once the mapping is gone."""
        mapping = self._groups.get_by_pool(pool_id)
        return mapping.external_group_id if mapping else group_id_for(pool_id)

    def ensure_group(self, pool_id: str, cancel: Optional[CancelToken] = None) -> ExternalGroupMapping:
        """Return the pool's group mapping, creating group and mapping when missing.

        Safe to call concurrently: Graph answers 409 for a group id that is
        already taken and the store falls back to the row the winner wrote.
        """
        check(cancel)
        existing = self._groups.get_by_pool(pool_id)
        if existing is not None:
            return existing

        group_id = group_id_for(pool_id)
        try:
            self._graph.create_external_group(
                group_id,
                f"Knowledge Pool {pool_id}",
                f"External group for knowledge pool {pool_id}",
            )
            logger.info(f"Created external group {group_id} for pool {pool_id}")
        except GraphApiError as e:
            if not e.is_conflict:
                logger.error(f"Failed to create external group for pool {pool_id}: {e}")
                raise
            logger.info(f"External group {group_id} already exists")

        return self._groups.ensure(pool_id, group_id)

    def remove_group(self, pool_id: str, detach: DetachFn, cancel: Optional[CancelToken] = None) -> int:
        """Tear down a pool; returns the number of files detached.

        Steps run in order and each is idempotent, so re-running after a
        crash finishes whatever is left:
        detach files → drop file/pool rows → delete group → drop mapping.
        """
        check(cancel)
        group_id = self.resolve_group_id(pool_id)

        file_ids = list(dict.fromkeys(self._file_pools.files_for_pool(pool_id)))
        for file_id in file_ids:
            check(cancel)
            detach(pool_id, file_id, cancel)

        removed = self._file_pools.delete_for_pool(pool_id)
        if removed:
            logger.info(f"Removed {removed} leftover file links of pool {pool_id}")

        check(cancel)
        try:
            self._graph.delete_external_group(group_id)
            logger.info(f"Deleted external group {group_id}")
        except GraphApiError as e:
            if not e.is_not_found:
                logger.error(f"Failed to delete external group {group_id}: {e}")
                raise
            logger.info(f"External group {group_id} was already deleted")

        self._groups.delete_by_pool(pool_id)
        return len(file_ids)
