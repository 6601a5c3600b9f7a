"""Stable Graph ids derived from source ids (pure functions)."""

from __future__ import annotations

GROUP_ID_PREFIX = "roXtraKp"
ITEM_ID_PREFIX = "roXtraFile"


def group_id_for(pool_id: str) -> str:
    return GROUP_ID_PREFIX + pool_id.replace("-", "").lower()


def item_id_for(file_id: str) -> str:
    # file ids are already valid Graph item ids
    return ITEM_ID_PREFIX + file_id
