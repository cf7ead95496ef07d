#!/usr/bin/env python3
"""
check_reconciliation.py

Verify that every item's cached `remaining` equals the sum of its ledgers.

Usage (from backend/):
  python scripts/check_reconciliation.py
  python scripts/check_reconciliation.py --item-id 42 --json
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from squirrel.database import ReadSessionLocal
from squirrel.apps.inventory import schemas, services


def _print_report(reports: List[schemas.Reconciliation], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([r.model_dump() for r in reports], indent=2))
        return
    for r in reports:
        status = "OK " if r.balanced else "BAD"
        print(
            f"[{status}] item={r.item_id} remaining={r.remaining} expected={r.expected_remaining} "
            f"(+{r.total_added} -{r.total_issued} issued -{r.total_removed} removed) version={r.version}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--item-id", type=int, default=None, help="check a single item")
    parser.add_argument("--json", action="store_true", help="emit JSON instead of text")
    parser.add_argument("--all", action="store_true", help="also list balanced items")
    args = parser.parse_args(argv)

    db = ReadSessionLocal()
    try:
        if args.item_id is not None:
            reports = [services.reconcile_item(db, args.item_id)]
        else:
            reports = services.reconcile_all(db)
    finally:
        db.close()

    unbalanced = [r for r in reports if not r.balanced]
    _print_report(reports if args.all or args.item_id is not None else unbalanced, as_json=args.json)
    if not args.json:
        print(f"[INFO] checked={len(reports)} unbalanced={len(unbalanced)}")
    return 1 if unbalanced else 0


if __name__ == "__main__":
    sys.exit(main())
