from __future__ import annotations

from squirrel.database import WriteSessionLocal
from squirrel.apps.inventory import models, services
from squirrel.apps.inventory.errors import DuplicateName

DEMO_ITEMS = [
    ("Cable ties (100 pack)", 40, "Aisle 3, bin 12"),
    ("Safety goggles", 25, "PPE cabinet"),
    ("AA batteries", 120, "Store room shelf B"),
    ("Printer paper A4 (ream)", 60, ""),
]


def _get_or_create_item(db, name: str, quantity: int, remarks: str) -> models.Item:
    existing = db.query(models.Item).filter(models.Item.name == name).first()
    if existing:
        return existing
    try:
        return services.create_item(db, name=name, quantity=quantity, remarks=remarks)
    except DuplicateName:
        return db.query(models.Item).filter(models.Item.name == name).one()


def main() -> None:
    db = WriteSessionLocal()
    try:
        items = [_get_or_create_item(db, *row) for row in DEMO_ITEMS]

        goggles = items[1]
        if goggles.remaining == goggles.quantity:
            services.record_issue(db, item_id=goggles.id, quantity=5, issued_to="Workshop team")
            services.record_removal(db, item_id=goggles.id, quantity=2, remarks="Scratched lenses")
            services.record_addition(db, item_id=goggles.id, quantity=10, remarks="Supplier delivery")

        for item in items:
            report = services.reconcile_item(db, item.id)
            print(f"[OK] {item.name}: remaining={report.remaining} balanced={report.balanced}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
