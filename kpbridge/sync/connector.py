"""Knowledge pool connector: one entry point per inbound event."""

from __future__ import annotations

import logging
from typing import Optional

from kpbridge.config import ConnectorOptions
from kpbridge.db.database import Database
from kpbridge.extraction.pdf_text import PdfTextExtractor, TextExtractor
from kpbridge.integrations.graph_client import GraphGateway
from kpbridge.models.mapping import ExternalGroupMapping
from kpbridge.models.schema import PREDEFINED_SCHEMA, Schema
from kpbridge.models.source import SourceFile
from kpbridge.sync.bootstrap import ConnectionBootstrapper
from kpbridge.sync.cancel import CancelToken, check
from kpbridge.sync.groups import GroupManager
from kpbridge.sync.items import DetachOutcome, ItemReconciler
from kpbridge.sync.members import MembershipSynchronizer

logger = logging.getLogger(__name__)


def _require(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{name} must be provided")
    return value


class KnowledgePoolConnector:
    """Maps knowledge pools to Graph external groups and files to external items.

    Every handler validates its identifiers before touching Graph or the
    store, then makes sure the connection (and schema) exist.
    """

    def __init__(
        self,
        db: Database,
        graph: GraphGateway,
        options: ConnectorOptions,
        extractor: Optional[TextExtractor] = None,
        schema: Schema = PREDEFINED_SCHEMA,
    ):
        self.options = options
        self.bootstrapper = ConnectionBootstrapper(graph, options, schema)
        self.groups = GroupManager(db, graph)
        self.items = ItemReconciler(db, graph, self.groups, extractor or PdfTextExtractor(), options)
        self.members = MembershipSynchronizer(graph, self.groups, options.use_membership_workaround)

    def initialize(self, cancel: Optional[CancelToken] = None) -> None:
        self.bootstrapper.initialize(cancel)

    # -- pools -----------------------------------------------------------------

    def handle_pool_created(self, pool_id: str, cancel: Optional[CancelToken] = None) -> ExternalGroupMapping:
        check(cancel)
        _require(pool_id, "Knowledge pool id")
        logger.info(f"Handling knowledgepool.created: pool={pool_id}")
        self.bootstrapper.ensure_connection(cancel)
        return self.groups.ensure_group(pool_id, cancel)

    def handle_pool_removed(self, pool_id: str, cancel: Optional[CancelToken] = None) -> int:
        check(cancel)
        _require(pool_id, "Knowledge pool id")
        logger.info(f"Handling knowledgepool.removed: pool={pool_id}")
        self.bootstrapper.ensure_connection(cancel)
        return self.groups.remove_group(pool_id, self.items.detach_file, cancel)

    # -- files -----------------------------------------------------------------

    def handle_file_added(self, pool_id: str, file: SourceFile, cancel: Optional[CancelToken] = None) -> None:
        check(cancel)
        _require(pool_id, "Knowledge pool id")
        if file is None:
            raise ValueError("file must be provided")
        _require(file.file_id, "File id")
        logger.info(
            f"Handling knowledgepool.file.added: pool={pool_id}, file={file.file_id}, "
            f"title={file.title!r}, content={'yes' if file.content_stream is not None else 'no'}"
        )
        self.bootstrapper.ensure_connection(cancel)
        self.items.attach_file(pool_id, file, cancel)

    def handle_file_removed(self, pool_id: str, file_id: str, cancel: Optional[CancelToken] = None) -> DetachOutcome:
        check(cancel)
        _require(pool_id, "Knowledge pool id")
        _require(file_id, "File id")
        logger.info(f"Handling knowledgepool.file.removed: pool={pool_id}, file={file_id}")
        self.bootstrapper.ensure_connection(cancel)
        return self.items.detach_file(pool_id, file_id, cancel)

    def handle_file_updated(self, file: SourceFile, cancel: Optional[CancelToken] = None) -> bool:
        check(cancel)
        if file is None:
            raise ValueError("file must be provided")
        _require(file.file_id, "File id")
        logger.info(
            f"Handling file.updated: file={file.file_id}, title={file.title!r}, "
            f"content={'yes' if file.content_stream is not None else 'no'}"
        )
        self.bootstrapper.ensure_connection(cancel)
        return self.items.update_file(file, cancel)

    # -- members ---------------------------------------------------------------

    def handle_member_added(
        self, pool_id: str, directory_group_id: Optional[str], cancel: Optional[CancelToken] = None
    ) -> None:
        check(cancel)
        _require(pool_id, "Knowledge pool id")
        logger.info(f"Handling knowledgepool.member.added: pool={pool_id}, directory_group={directory_group_id}")
        self.bootstrapper.ensure_connection(cancel)
        self.members.add_member(pool_id, directory_group_id, cancel)

    def handle_member_removed(
        self, pool_id: str, directory_group_id: Optional[str], cancel: Optional[CancelToken] = None
    ) -> None:
        check(cancel)
        _require(pool_id, "Knowledge pool id")
        logger.info(f"Handling knowledgepool.member.removed: pool={pool_id}, directory_group={directory_group_id}")
        if directory_group_id and directory_group_id.strip():
            self.bootstrapper.ensure_connection(cancel)
        self.members.remove_member(pool_id, directory_group_id, cancel)
