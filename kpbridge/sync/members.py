"""Directory group membership of the external groups."""

from __future__ import annotations

import logging
from typing import Optional

from kpbridge.errors import GraphApiError
from kpbridge.integrations.graph_client import GraphGateway
from kpbridge.models.source import ConnectorIdentity, IdentityType
from kpbridge.sync.cancel import CancelToken, check
from kpbridge.sync.groups import GroupManager

logger = logging.getLogger(__name__)

IDENTITY_SOURCE = "azureActiveDirectory"


class MembershipSynchronizer:
    """Adds and removes Entra ID groups as members of a pool's external group.

    With the membership workaround enabled the platform calls are skipped and
    access comes from the everyone grant on each item instead.
    """

    def __init__(self, graph: GraphGateway, groups: GroupManager, use_workaround: bool = False):
        self._graph = graph
        self._groups = groups
        self._use_workaround = use_workaround

    def add_member(self, pool_id: str, directory_group_id: Optional[str], cancel: Optional[CancelToken] = None) -> None:
        group = self._groups.ensure_group(pool_id, cancel)

        # source groups without a directory counterpart
        if not directory_group_id or not directory_group_id.strip():
            logger.debug(f"No directory group id; ensured {group.external_group_id} and skipped member add")
            return

        if self._use_workaround:
            logger.info(
                f"Workaround enabled: not adding {directory_group_id} to {group.external_group_id}; access is ACL based"
            )
            return

        check(cancel)
        identity = ConnectorIdentity(id=directory_group_id, type=IdentityType.GROUP, identity_source=IDENTITY_SOURCE)
        try:
            self._graph.add_group_member(group.external_group_id, identity)
            logger.info(f"Added member {directory_group_id} to external group {group.external_group_id}")
        except GraphApiError as e:
            if not e.is_conflict:
                raise
            logger.info(f"Member {directory_group_id} already in external group {group.external_group_id}")

    def remove_member(self, pool_id: str, directory_group_id: Optional[str], cancel: Optional[CancelToken] = None) -> None:
        if not directory_group_id or not directory_group_id.strip():
            logger.debug(f"No directory group id for member removal from pool {pool_id}; skipping")
            return

        group = self._groups.ensure_group(pool_id, cancel)
        if self._use_workaround:
            logger.info(
                f"Workaround enabled: not removing {directory_group_id} from {group.external_group_id}; access is ACL based"
            )
            return

        check(cancel)
        try:
            self._graph.remove_group_member(group.external_group_id, directory_group_id)
            logger.info(f"Removed member {directory_group_id} from external group {group.external_group_id}")
        except GraphApiError as e:
            if e.is_not_found:
                # a missed add event; the caller decides whether to retry
                logger.error(f"Member {directory_group_id} not found in external group {group.external_group_id}")
            raise
