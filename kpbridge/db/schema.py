"""Database schema DDL — the three mapping tables owned by the sync core."""

SCHEMA_DDL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys = ON;

-- ==========================================================================
-- Knowledge pool -> Graph external group
-- ==========================================================================
CREATE TABLE IF NOT EXISTS external_groups (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    pool_id             TEXT NOT NULL UNIQUE,
    external_group_id   TEXT NOT NULL UNIQUE,
    created_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

-- ==========================================================================
-- Source file -> Graph external item
-- ==========================================================================
CREATE TABLE IF NOT EXISTS external_items (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    file_id             TEXT NOT NULL UNIQUE,
    external_item_id    TEXT NOT NULL UNIQUE,
    created_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

-- ==========================================================================
-- File membership in knowledge pools
-- ==========================================================================
CREATE TABLE IF NOT EXISTS file_pools (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    file_id     TEXT NOT NULL,
    pool_id     TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    UNIQUE(file_id, pool_id)
);

CREATE INDEX IF NOT EXISTS idx_file_pools_pool ON file_pools(pool_id);
"""
