#!/usr/bin/env python3
"""
Deactivate exact duplicate jobs (same company and title after normalization).

The job from the most trusted source survives; ties go to the longer
description.

Usage:
    python scripts/dedup_jobs.py --db data/jobs.db --dry-run
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jobboard.duplicates import dedupe_exact, plan_exact_dedup, source_priority
from jobboard.env import Settings, load_env
from jobboard.errors import StoreError
from jobboard.storage import JobStore


def show_plan(store: JobStore, max_groups: int = 20):
    """Print the survivor and losers of the largest duplicate sets."""
    plans = plan_exact_dedup(store.fetch_active_jobs(order_by_company=True))
    print(f"Found {len(plans)} duplicate sets")

    for survivor, losers in plans[:max_groups]:
        print(f"\n  {len(losers) + 1}x \"{survivor.title}\" @ {survivor.company}")
        print(f"      ✅ keep   [{survivor.source}] (priority {source_priority(survivor.source)}) {survivor.id}")
        for loser in losers:
            print(f"      ❌ remove [{loser.source}] (priority {source_priority(loser.source)}) {loser.id}")
    if len(plans) > max_groups:
        print(f"\n  ... and {len(plans) - max_groups} more sets")


def main():
    load_env()
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Deactivate exact duplicate jobs")
    parser.add_argument("--db", type=Path, default=settings.db_path,
                       help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                       help="Show what would be deactivated without writing")

    args = parser.parse_args()

    if not args.db.exists():
        print(f"❌ Database not found: {args.db}")
        sys.exit(1)

    store = JobStore(args.db)
    if args.dry_run:
        print("🔍 DRY RUN MODE - No changes will be made\n")

    try:
        show_plan(store)
        result = dedupe_exact(store, dry_run=args.dry_run)
    except StoreError as e:
        print(f"❌ Dedup failed: {e}")
        sys.exit(1)

    print(f"\n✅ Dedup complete!")
    print(f"   Scanned:     {result.scanned}")
    print(f"   Sets:        {result.groups}")
    print(f"   Deactivated: {0 if result.dry_run else len(result.deactivated_ids)}")
    if result.dry_run and result.deactivated_ids:
        print(f"\n💡 Run without --dry-run to deactivate {len(result.deactivated_ids)} jobs")


if __name__ == "__main__":
    main()
