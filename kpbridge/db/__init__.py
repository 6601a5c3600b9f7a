"""Database layer — SQLite with ACID transactions and repository pattern."""

from kpbridge.db.database import Database
from kpbridge.db.schema import SCHEMA_DDL

__all__ = ["Database", "SCHEMA_DDL"]
