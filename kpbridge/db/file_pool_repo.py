"""Repository for the ``file_pools`` table."""

from __future__ import annotations

import sqlite3
from typing import Optional

from kpbridge.db.database import Database
from kpbridge.errors import MappingExistsError
from kpbridge.models.mapping import FilePoolMembership


class FilePoolRepository:
    """Which knowledge pools currently include which files."""

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(
        self, membership: FilePoolMembership, conn: Optional[sqlite3.Connection] = None
    ) -> FilePoolMembership:
        try:
            with self._db.use(conn) as c:
                cursor = c.execute(
                    "INSERT INTO file_pools (file_id, pool_id, created_at) VALUES (?, ?, ?)",
                    (membership.file_id, membership.pool_id, membership.created_at),
                )
        except sqlite3.IntegrityError as e:
            raise MappingExistsError(
                f"File {membership.file_id} is already recorded in pool {membership.pool_id}"
            ) from e
        membership.id = cursor.lastrowid
        return membership

    def ensure(
        self, file_id: str, pool_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> FilePoolMembership:
        try:
            return self.create(FilePoolMembership(file_id=file_id, pool_id=pool_id), conn)
        except MappingExistsError:
            existing = self.get(file_id, pool_id, conn)
            if existing is None:
                raise
            return existing

    # -- Read ------------------------------------------------------------------

    def get(
        self, file_id: str, pool_id: str, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[FilePoolMembership]:
        c = conn or self._db.connection()
        row = c.execute(
            "SELECT * FROM file_pools WHERE file_id = ? AND pool_id = ?", (file_id, pool_id)
        ).fetchone()
        return FilePoolMembership.from_row(dict(row)) if row else None

    def pools_for_file(self, file_id: str) -> list[str]:
        """Pool ids of *file_id* in the order they were added."""
        rows = self._db.fetchall(
            "SELECT pool_id FROM file_pools WHERE file_id = ? ORDER BY id", (file_id,)
        )
        return [r["pool_id"] for r in rows]

    def files_for_pool(self, pool_id: str) -> list[str]:
        rows = self._db.fetchall(
            "SELECT file_id FROM file_pools WHERE pool_id = ? ORDER BY id", (pool_id,)
        )
        return [r["file_id"] for r in rows]

    def count_for_pool(self, pool_id: str) -> int:
        row = self._db.fetchone("SELECT COUNT(*) AS n FROM file_pools WHERE pool_id = ?", (pool_id,))
        return row["n"] if row else 0

    # -- Delete ----------------------------------------------------------------

    def delete(self, file_id: str, pool_id: str, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._db.use(conn) as c:
            cursor = c.execute(
                "DELETE FROM file_pools WHERE file_id = ? AND pool_id = ?", (file_id, pool_id)
            )
        return cursor.rowcount

    def delete_for_pool(self, pool_id: str, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._db.use(conn) as c:
            cursor = c.execute("DELETE FROM file_pools WHERE pool_id = ?", (pool_id,))
        return cursor.rowcount
