"""Repository for the ``external_items`` table."""

from __future__ import annotations

import sqlite3
from typing import Optional

from kpbridge.db.database import Database
from kpbridge.errors import MappingExistsError
from kpbridge.models.mapping import ExternalItemMapping


class ItemMappingRepository:
    """Source file ↔ external item persistence."""

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(
        self, mapping: ExternalItemMapping, conn: Optional[sqlite3.Connection] = None
    ) -> ExternalItemMapping:
        try:
            with self._db.use(conn) as c:
                cursor = c.execute(
                    """INSERT INTO external_items (file_id, external_item_id, created_at)
                       VALUES (?, ?, ?)""",
                    (mapping.file_id, mapping.external_item_id, mapping.created_at),
                )
        except sqlite3.IntegrityError as e:
            raise MappingExistsError(
                f"External item mapping for file {mapping.file_id} already exists"
            ) from e
        mapping.id = cursor.lastrowid
        return mapping

    def ensure(
        self, file_id: str, external_item_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> ExternalItemMapping:
        """Insert if not exists, else return the stored row (re-pointed at *external_item_id*)."""
        try:
            return self.create(ExternalItemMapping(file_id=file_id, external_item_id=external_item_id), conn)
        except MappingExistsError:
            existing = self.get_by_file(file_id, conn)
            if existing is None:
                raise
            if existing.external_item_id != external_item_id:
                with self._db.use(conn) as c:
                    c.execute(
                        "UPDATE external_items SET external_item_id = ? WHERE file_id = ?",
                        (external_item_id, file_id),
                    )
                existing.external_item_id = external_item_id
            return existing

    # -- Read ------------------------------------------------------------------

    def get_by_file(
        self, file_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[ExternalItemMapping]:
        c = conn or self._db.connection()
        row = c.execute("SELECT * FROM external_items WHERE file_id = ?", (file_id,)).fetchone()
        return ExternalItemMapping.from_row(dict(row)) if row else None

    def list_all(self) -> list[ExternalItemMapping]:
        rows = self._db.fetchall("SELECT * FROM external_items ORDER BY id")
        return [ExternalItemMapping.from_row(r) for r in rows]

    # -- Delete ----------------------------------------------------------------

    def delete_by_file(self, file_id: str, conn: Optional[sqlite3.Connection] = None) -> bool:
        with self._db.use(conn) as c:
            cursor = c.execute("DELETE FROM external_items WHERE file_id = ?", (file_id,))
        return cursor.rowcount > 0
