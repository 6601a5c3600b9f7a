"""Quick check of mapping database state."""
import argparse
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from kpbridge.db.database import Database
from kpbridge.db.file_pool_repo import FilePoolRepository
from kpbridge.db.group_repo import GroupMappingRepository
from kpbridge.db.item_repo import ItemMappingRepository

parser = argparse.ArgumentParser(description="Print the mapping tables")
parser.add_argument("--db-path", type=str, help="Override database path")
args = parser.parse_args()

db = Database(path=Path(args.db_path) if args.db_path else None)
db.init()

print("=== External groups ===")
groups = GroupMappingRepository(db).list_all()
print(f"Total: {len(groups)}")
for g in groups:
    print(f"  {g.pool_id:<38} -> {g.external_group_id}")

print("\n=== External items ===")
items = ItemMappingRepository(db).list_all()
print(f"Total: {len(items)}")
file_pools = FilePoolRepository(db)
for i in items:
    pools = ";".join(file_pools.pools_for_file(i.file_id)) or "(no pools)"
    print(f"  {i.file_id:<20} -> {i.external_item_id:<32} | {pools}")

db.close()
