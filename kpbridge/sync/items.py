"""External item reconciliation: keeps item ACLs in step with pool membership.

An item is either absent or present with at least one external-group grant.
Removing the last grant deletes the item, so "present with an empty ACL"
never persists.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from kpbridge.config import ConnectorOptions
from kpbridge.db.database import Database
from kpbridge.db.file_pool_repo import FilePoolRepository
from kpbridge.db.item_repo import ItemMappingRepository
from kpbridge.errors import GraphApiError, ItemConsistencyError
from kpbridge.extraction.pdf_text import TextExtractor
from kpbridge.integrations.graph_client import GraphGateway
from kpbridge.models.item import (
    AclEntry, Absent, ExternalItem, ItemProperties, ItemState, Present,
    count_group_grants, has_everyone, has_group_grant, without_group,
)
from kpbridge.models.source import SourceFile
from kpbridge.sync.cancel import CancelToken, check
from kpbridge.sync.groups import GroupManager
from kpbridge.sync.ids import item_id_for
from kpbridge.sync.properties import build_item_properties, join_pool_ids, with_pool

logger = logging.getLogger(__name__)


class DetachOutcome(str, Enum):
    ALREADY_ABSENT = "already_absent"
    DELETED = "deleted"
    UPDATED = "updated"


class ItemReconciler:
    """Attach, detach and refresh external items for source files."""

    def __init__(
        self,
        db: Database,
        graph: GraphGateway,
        groups: GroupManager,
        extractor: TextExtractor,
        options: ConnectorOptions,
    ):
        self._db = db
        self._graph = graph
        self._groups = groups
        self._extractor = extractor
        self._options = options
        self._items = ItemMappingRepository(db)
        self._file_pools = FilePoolRepository(db)

    # -- state -----------------------------------------------------------------

    def fetch_state(self, item_id: str) -> ItemState:
        """Ask Graph for the item; 404 means absent."""
        try:
            return Present(self._graph.get_item(item_id))
        except GraphApiError as e:
            if e.is_not_found:
                return Absent()
            raise

    def _extract_text(self, file: SourceFile) -> str:
        if file.content_stream is None:
            return ""
        return self._extractor.extract(file.content_stream)

    # -- attach ----------------------------------------------------------------

    def attach_file(self, pool_id: str, file: SourceFile, cancel: Optional[CancelToken] = None) -> None:
        """Give *pool_id*'s external group access to the item for *file*.

        Creates the item the first time the file is seen; afterwards only
        the ACL and ``knowledgePoolIds`` change.
        """
        check(cancel)
        group = self._groups.ensure_group(pool_id, cancel)
        group_id = group.external_group_id
        item_id = item_id_for(file.file_id)
        pool_ids = with_pool(self._file_pools.pools_for_file(file.file_id), pool_id)

        check(cancel)
        mapping = self._items.get_by_file(file.file_id)
        state = self.fetch_state(item_id)

        if mapping is not None or isinstance(state, Present):
            if isinstance(state, Absent):
                raise ItemConsistencyError(
                    f"External item {item_id} is mapped to file {file.file_id} but missing in Graph"
                )
            self._merge_acl(item_id, state, group_id, pool_ids, cancel)
        else:
            self._create_item(item_id, file, group_id, pool_ids, cancel)

        with self._db.transaction() as conn:
            self._items.ensure(file.file_id, item_id, conn)
            self._file_pools.ensure(file.file_id, pool_id, conn)

    def _merge_acl(
        self,
        item_id: str,
        state: Present,
        group_id: str,
        pool_ids: list[str],
        cancel: Optional[CancelToken],
    ) -> None:
        acl = state.acl
        changed = False

        if self._options.use_membership_workaround and not has_everyone(acl):
            acl.append(AclEntry.everyone())
            changed = True
        if not has_group_grant(acl, group_id):
            acl.append(AclEntry.external_group(group_id))
            changed = True

        if not changed:
            logger.info(f"ACL of external item {item_id} already grants {group_id}; no update needed")
            return

        check(cancel)
        self._graph.upsert_item(
            item_id,
            ExternalItem(acl=acl, properties=ItemProperties(knowledge_pool_ids=join_pool_ids(pool_ids))),
        )
        logger.info(f"Updated ACL and knowledgePoolIds of external item {item_id} to include {group_id}")

    def _initial_acl(self, group_ids: list[str]) -> list[AclEntry]:
        acl: list[AclEntry] = []
        if self._options.use_membership_workaround:
            acl.append(AclEntry.everyone())
        acl.extend(AclEntry.external_group(g) for g in group_ids)
        return acl

    def _create_item(
        self,
        item_id: str,
        file: SourceFile,
        group_id: str,
        pool_ids: list[str],
        cancel: Optional[CancelToken],
    ) -> None:
        text = self._extract_text(file)
        properties = build_item_properties(
            file_id=file.file_id,
            title=file.title,
            pool_ids=pool_ids,
            text=text,
            base_url=self._options.source_base_url,
        )
        check(cancel)
        try:
            self._graph.upsert_item(
                item_id,
                ExternalItem(id=item_id, content=text, properties=properties, acl=self._initial_acl([group_id])),
            )
        except GraphApiError as e:
            logger.error(f"Failed to upsert external item for file {file.file_id}: {e}")
            raise
        logger.info(f"Created external item {item_id} for file {file.file_id}")

    # -- detach ----------------------------------------------------------------

    def detach_file(self, pool_id: str, file_id: str, cancel: Optional[CancelToken] = None) -> DetachOutcome:
        """Revoke *pool_id*'s grant on the file's item; deletes the item with its last grant."""
        check(cancel)
        # the link goes first so a crash never leaves a grant nothing accounts for
        self._file_pools.delete(file_id, pool_id)

        group_id = self._groups.resolve_group_id(pool_id)
        mapping = self._items.get_by_file(file_id)
        item_id = mapping.external_item_id if mapping else item_id_for(file_id)

        check(cancel)
        state = self.fetch_state(item_id)
        if isinstance(state, Absent):
            logger.info(f"External item {item_id} not found; cleaning up local mapping")
            if mapping is not None:
                logger.warning(f"File {file_id} was mapped to {item_id}, which no longer exists in Graph")
            self._items.delete_by_file(file_id)
            return DetachOutcome.ALREADY_ABSENT

        remaining = without_group(state.acl, group_id)
        check(cancel)
        if count_group_grants(remaining) == 0:
            self._graph.delete_item(item_id)
            self._items.delete_by_file(file_id)
            logger.info(f"Deleted external item {item_id} after removing {group_id}")
            return DetachOutcome.DELETED

        pool_ids = list(dict.fromkeys(self._file_pools.pools_for_file(file_id)))
        self._graph.upsert_item(
            item_id,
            ExternalItem(acl=remaining, properties=ItemProperties(knowledge_pool_ids=join_pool_ids(pool_ids))),
        )
        logger.info(f"Removed {group_id} from ACL of external item {item_id}")
        return DetachOutcome.UPDATED

    # -- update ----------------------------------------------------------------

    def update_file(self, file: SourceFile, cancel: Optional[CancelToken] = None) -> bool:
        """Push new content and properties. Returns False when nothing was written."""
        check(cancel)
        item_id = item_id_for(file.file_id)
        state = self.fetch_state(item_id)

        text = self._extract_text(file)
        pool_ids = self._file_pools.pools_for_file(file.file_id)
        properties = build_item_properties(
            file_id=file.file_id,
            title=file.title,
            pool_ids=pool_ids,
            text=text,
            base_url=self._options.source_base_url,
        )

        check(cancel)
        if isinstance(state, Present):
            # id and ACL stay untouched
            self._graph.upsert_item(item_id, ExternalItem(content=text, properties=properties))
            logger.info(f"Updated content of external item {item_id}")
            return True

        if not pool_ids:
            logger.warning(f"File {file.file_id} is in no knowledge pool; not creating external item")
            return False

        group_ids = [self._groups.resolve_group_id(p) for p in pool_ids]
        self._graph.upsert_item(
            item_id,
            ExternalItem(id=item_id, content=text, properties=properties, acl=self._initial_acl(group_ids)),
        )
        logger.info(f"Created external item {item_id} for updated file {file.file_id}")
        self._items.ensure(file.file_id, item_id)
        return True
