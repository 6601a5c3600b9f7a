"""Builds the search properties of an external item from a source file."""

from __future__ import annotations

from typing import Iterable

from kpbridge.models.item import ItemProperties

DESCRIPTION_MAX_CHARS = 200
ELLIPSIS = "…"
FILE_PATH = "/ui/xd/files/"
ICON_PATH = "/doc/images/svgs/mod/default/favicon-32x32.png"


def join_pool_ids(pool_ids: Iterable[str]) -> str:
    return ";".join(pool_ids)


def truncate_description(text: str, limit: int = DESCRIPTION_MAX_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def file_url(base_url: str, file_id: str) -> str:
    return base_url.rstrip("/") + FILE_PATH + file_id


def icon_url(base_url: str) -> str:
    return base_url.rstrip("/") + ICON_PATH


def build_item_properties(
    *,
    file_id: str,
    title: str,
    pool_ids: Iterable[str],
    text: str,
    base_url: str,
) -> ItemProperties:
    return ItemProperties(
        title=title,
        url=file_url(base_url, file_id),
        rox_file_id=file_id,
        icon_url=icon_url(base_url),
        knowledge_pool_ids=join_pool_ids(pool_ids),
        description=truncate_description(text),
    )


def with_pool(pool_ids: list[str], pool_id: str) -> list[str]:
    """*pool_ids* plus *pool_id*, appended only if missing."""
    if pool_id in pool_ids:
        return list(pool_ids)
    return [*pool_ids, pool_id]
