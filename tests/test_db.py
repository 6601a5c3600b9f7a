"""Unit tests for the DB layer — schema, mapping models and the three repositories.

Every test uses a fresh temporary SQLite file so tests are isolated and
leave nothing behind in the project tree.
"""

from __future__ import annotations

import tempfile
import threading
import unittest
from pathlib import Path

from kpbridge.db.database import Database
from kpbridge.db.file_pool_repo import FilePoolRepository
from kpbridge.db.group_repo import GroupMappingRepository
from kpbridge.db.item_repo import ItemMappingRepository
from kpbridge.errors import MappingExistsError
from kpbridge.models.mapping import ExternalGroupMapping, ExternalItemMapping, FilePoolMembership


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_db() -> Database:
    """Return a Database backed by a fresh temporary file."""
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    db = Database(path=Path(tmp.name))
    db.init()
    return db


# ===========================================================================
# 1. Database core
# ===========================================================================

class TestDatabaseCore(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()

    def tearDown(self):
        self.db.close()

    def test_tables_created(self):
        tables = self.db.fetchall(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        names = {t["name"] for t in tables}
        self.assertTrue({"external_groups", "external_items", "file_pools"} <= names)

    def test_init_is_idempotent(self):
        self.db.init()
        self.db.init()
        self.assertEqual(len(GroupMappingRepository(self.db).list_all()), 0)

    def test_transaction_rolls_back_on_error(self):
        repo = FilePoolRepository(self.db)
        with self.assertRaises(RuntimeError):
            with self.db.transaction() as conn:
                repo.create(FilePoolMembership("f1", "p1"), conn)
                raise RuntimeError("boom")
        self.assertIsNone(repo.get("f1", "p1"))

    def test_transaction_commits_all_writes(self):
        items = ItemMappingRepository(self.db)
        pools = FilePoolRepository(self.db)
        with self.db.transaction() as conn:
            items.ensure("f1", "roXtraFilef1", conn)
            pools.ensure("f1", "p1", conn)
        self.assertIsNotNone(items.get_by_file("f1"))
        self.assertEqual(pools.pools_for_file("f1"), ["p1"])

    def test_each_thread_gets_own_connection(self):
        conns = []

        def grab():
            conns.append(self.db.connection())

        t = threading.Thread(target=grab)
        t.start()
        t.join()
        self.assertIsNot(conns[0], self.db.connection())


# ===========================================================================
# 2. Models
# ===========================================================================

class TestMappingModels(unittest.TestCase):
    def test_group_mapping_round_trip(self):
        m = ExternalGroupMapping(pool_id="kp-1", external_group_id="roXtraKpkp1", id=3)
        again = ExternalGroupMapping.from_row(m.to_dict())
        self.assertEqual(again, m)

    def test_created_at_defaults_to_utc_timestamp(self):
        m = ExternalItemMapping(file_id="f", external_item_id="roXtraFilef")
        self.assertTrue(m.created_at.endswith("Z"))


# ===========================================================================
# 3. Group mappings
# ===========================================================================

class TestGroupMappingRepository(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.repo = GroupMappingRepository(self.db)

    def tearDown(self):
        self.db.close()

    def test_create_and_get(self):
        created = self.repo.create(ExternalGroupMapping("kp-1", "roXtraKpkp1"))
        self.assertIsNotNone(created.id)
        fetched = self.repo.get_by_pool("kp-1")
        self.assertEqual(fetched.external_group_id, "roXtraKpkp1")
        self.assertEqual(self.repo.get_by_external_group("roXtraKpkp1").pool_id, "kp-1")

    def test_duplicate_create_is_distinguishable(self):
        self.repo.create(ExternalGroupMapping("kp-1", "roXtraKpkp1"))
        with self.assertRaises(MappingExistsError):
            self.repo.create(ExternalGroupMapping("kp-1", "roXtraKpkp1"))

    def test_ensure_falls_back_to_existing_row(self):
        first = self.repo.ensure("kp-1", "roXtraKpkp1")
        second = self.repo.ensure("kp-1", "roXtraKpkp1")
        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.repo.list_all()), 1)

    def test_delete_by_pool(self):
        self.repo.ensure("kp-1", "roXtraKpkp1")
        self.assertTrue(self.repo.delete_by_pool("kp-1"))
        self.assertFalse(self.repo.delete_by_pool("kp-1"))
        self.assertIsNone(self.repo.get_by_pool("kp-1"))


# ===========================================================================
# 4. Item mappings
# ===========================================================================

class TestItemMappingRepository(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.repo = ItemMappingRepository(self.db)

    def tearDown(self):
        self.db.close()

    def test_unique_file_id(self):
        self.repo.create(ExternalItemMapping("f1", "roXtraFilef1"))
        with self.assertRaises(MappingExistsError):
            self.repo.create(ExternalItemMapping("f1", "other"))

    def test_unique_external_item_id(self):
        self.repo.create(ExternalItemMapping("f1", "roXtraFilef1"))
        with self.assertRaises(MappingExistsError):
            self.repo.create(ExternalItemMapping("f2", "roXtraFilef1"))

    def test_ensure_repoints_item_id(self):
        self.repo.create(ExternalItemMapping("f1", "legacy-id"))
        m = self.repo.ensure("f1", "roXtraFilef1")
        self.assertEqual(m.external_item_id, "roXtraFilef1")
        self.assertEqual(self.repo.get_by_file("f1").external_item_id, "roXtraFilef1")

    def test_delete_by_file(self):
        self.repo.ensure("f1", "roXtraFilef1")
        self.assertTrue(self.repo.delete_by_file("f1"))
        self.assertEqual(self.repo.list_all(), [])


# ===========================================================================
# 5. File ↔ pool memberships
# ===========================================================================

class TestFilePoolRepository(unittest.TestCase):
    def setUp(self):
        self.db = _make_db()
        self.repo = FilePoolRepository(self.db)

    def tearDown(self):
        self.db.close()

    def test_pools_keep_insertion_order(self):
        for pool in ("p3", "p1", "p2"):
            self.repo.ensure("f1", pool)
        self.assertEqual(self.repo.pools_for_file("f1"), ["p3", "p1", "p2"])

    def test_duplicate_pair_rejected(self):
        self.repo.create(FilePoolMembership("f1", "p1"))
        with self.assertRaises(MappingExistsError):
            self.repo.create(FilePoolMembership("f1", "p1"))
        self.assertEqual(self.repo.ensure("f1", "p1").file_id, "f1")

    def test_files_for_pool_and_count(self):
        self.repo.ensure("f1", "p1")
        self.repo.ensure("f2", "p1")
        self.repo.ensure("f2", "p2")
        self.assertEqual(self.repo.files_for_pool("p1"), ["f1", "f2"])
        self.assertEqual(self.repo.count_for_pool("p1"), 2)

    def test_delete_pair_and_pool(self):
        self.repo.ensure("f1", "p1")
        self.repo.ensure("f2", "p1")
        self.repo.ensure("f2", "p2")
        self.assertEqual(self.repo.delete("f1", "p1"), 1)
        self.assertEqual(self.repo.delete("f1", "p1"), 0)
        self.assertEqual(self.repo.delete_for_pool("p1"), 1)
        self.assertEqual(self.repo.count_for_pool("p1"), 0)
        self.assertEqual(self.repo.pools_for_file("f2"), ["p2"])


if __name__ == "__main__":
    unittest.main()
