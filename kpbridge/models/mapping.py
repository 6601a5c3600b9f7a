"""Mapping models — local bookkeeping that links source ids to Graph ids."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class ExternalGroupMapping:
    """Knowledge pool ↔ Graph external group."""

    pool_id: str
    external_group_id: str
    id: Optional[int] = None
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pool_id": self.pool_id,
            "external_group_id": self.external_group_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ExternalGroupMapping":
        return cls(
            id=row.get("id"),
            pool_id=row["pool_id"],
            external_group_id=row["external_group_id"],
            created_at=row.get("created_at", ""),
        )


@dataclass
class ExternalItemMapping:
    """Source file ↔ Graph external item."""

    file_id: str
    external_item_id: str
    id: Optional[int] = None
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_id": self.file_id,
            "external_item_id": self.external_item_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ExternalItemMapping":
        return cls(
            id=row.get("id"),
            file_id=row["file_id"],
            external_item_id=row["external_item_id"],
            created_at=row.get("created_at", ""),
        )


@dataclass
class FilePoolMembership:
    """File F is currently included in knowledge pool P."""

    file_id: str
    pool_id: str
    id: Optional[int] = None
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_id": self.file_id,
            "pool_id": self.pool_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "FilePoolMembership":
        return cls(
            id=row.get("id"),
            file_id=row["file_id"],
            pool_id=row["pool_id"],
            created_at=row.get("created_at", ""),
        )
