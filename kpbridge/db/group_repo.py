"""Repository for the ``external_groups`` table."""

from __future__ import annotations

import sqlite3
from typing import Optional

from kpbridge.db.database import Database
from kpbridge.errors import MappingExistsError
from kpbridge.models.mapping import ExternalGroupMapping


class GroupMappingRepository:
    """Knowledge pool ↔ external group persistence."""

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(
        self, mapping: ExternalGroupMapping, conn: Optional[sqlite3.Connection] = None
    ) -> ExternalGroupMapping:
        """Insert *mapping*; raises ``MappingExistsError`` if pool or group is taken."""
        try:
            with self._db.use(conn) as c:
                cursor = c.execute(
                    """INSERT INTO external_groups (pool_id, external_group_id, created_at)
                       VALUES (?, ?, ?)""",
                    (mapping.pool_id, mapping.external_group_id, mapping.created_at),
                )
        except sqlite3.IntegrityError as e:
            raise MappingExistsError(
                f"External group mapping for pool {mapping.pool_id} already exists"
            ) from e
        mapping.id = cursor.lastrowid
        return mapping

    def ensure(
        self, pool_id: str, external_group_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> ExternalGroupMapping:
        """Insert if not exists, else return the stored row."""
        try:
            return self.create(ExternalGroupMapping(pool_id=pool_id, external_group_id=external_group_id), conn)
        except MappingExistsError:
            existing = self.get_by_pool(pool_id, conn)
            if existing is None:
                raise
            return existing

    # -- Read ------------------------------------------------------------------

    def get_by_pool(
        self, pool_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[ExternalGroupMapping]:
        c = conn or self._db.connection()
        row = c.execute("SELECT * FROM external_groups WHERE pool_id = ?", (pool_id,)).fetchone()
        return ExternalGroupMapping.from_row(dict(row)) if row else None

    def get_by_external_group(self, external_group_id: str) -> Optional[ExternalGroupMapping]:
        row = self._db.fetchone(
            "SELECT * FROM external_groups WHERE external_group_id = ?", (external_group_id,)
        )
        return ExternalGroupMapping.from_row(row) if row else None

    def list_all(self) -> list[ExternalGroupMapping]:
        rows = self._db.fetchall("SELECT * FROM external_groups ORDER BY id")
        return [ExternalGroupMapping.from_row(r) for r in rows]

    # -- Delete ----------------------------------------------------------------

    def delete_by_pool(self, pool_id: str, conn: Optional[sqlite3.Connection] = None) -> bool:
        with self._db.use(conn) as c:
            cursor = c.execute("DELETE FROM external_groups WHERE pool_id = ?", (pool_id,))
        return cursor.rowcount > 0
