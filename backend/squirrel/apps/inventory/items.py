"""
Item store.

Owns the `items` row. `remaining` and `version` only change through the
version-guarded statements below; callers supply the transaction.
"""

from __future__ import annotations

import enum
from typing import List, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from squirrel.pagination import Filters, Metadata, calculate_metadata, safelist

from . import models
from .errors import EditConflict, InvalidInput, NotFound, storage_errors

ITEM_SORT_COLUMNS = {
    "id": models.Item.id,
    "name": models.Item.name,
    "remarks": models.Item.remarks,
    "created_at": models.Item.created_at,
}
ITEM_SORT_SAFELIST = safelist(*ITEM_SORT_COLUMNS)

_items = models.Item.__table__


class StockDirection(int, enum.Enum):
    INCREASE = 1
    DECREASE = -1


def get_item(db: Session, item_id: int) -> models.Item:
    if item_id is None or item_id < 1:
        raise NotFound(f"item {item_id} not found")

    stmt = (
        select(models.Item)
        .where(models.Item.id == item_id)
        .execution_options(populate_existing=True)
    )
    with storage_errors():
        item = db.execute(stmt).scalar_one_or_none()
    if item is None:
        raise NotFound(f"item {item_id} not found")
    return item


def insert_item(tx: Session, item: models.Item) -> models.Item:
    item.remaining = item.quantity
    item.version = models.ITEM_INITIAL_VERSION
    if item.remarks is None:
        item.remarks = ""
    with storage_errors():
        tx.add(item)
        tx.flush()
    return item


def apply_delta(
    tx: Session,
    item_id: int,
    quantity: int,
    *,
    direction: StockDirection,
    expected_version: int,
) -> int:
    """
    Move `remaining` by `quantity` in `direction`, guarded by `expected_version`.

    Returns the new version. Raises EditConflict when the row has moved on
    (or vanished) since `expected_version` was read.
    """
    if quantity < 0:
        raise InvalidInput({"quantity": "must not be negative"})

    delta = int(quantity) * int(direction)
    stmt = (
        update(_items)
        .where(_items.c.id == item_id, _items.c.version == expected_version)
        .values(remaining=_items.c.remaining + delta, version=_items.c.version + 1)
        .returning(_items.c.version)
    )
    with storage_errors():
        new_version = tx.execute(stmt).scalar_one_or_none()
    if new_version is None:
        raise EditConflict(f"item {item_id} changed since version {expected_version}")
    return new_version


def update_item(tx: Session, item_id: int, *, remaining: int, expected_version: int) -> int:
    """Administrative override of `remaining`. No ledger row is written."""
    if item_id < 1:
        raise NotFound(f"item {item_id} not found")
    if remaining < 0:
        raise InvalidInput({"remaining": "must not be negative"})

    stmt = (
        update(_items)
        .where(_items.c.id == item_id, _items.c.version == expected_version)
        .values(remaining=remaining, version=_items.c.version + 1)
        .returning(_items.c.version)
    )
    with storage_errors():
        new_version = tx.execute(stmt).scalar_one_or_none()
    if new_version is None:
        raise EditConflict(f"item {item_id} changed since version {expected_version}")
    return new_version


def delete_item(tx: Session, item_id: int) -> None:
    # Not version-guarded: deletes are an administrative path.
    if item_id is None or item_id < 1:
        raise NotFound(f"item {item_id} not found")
    with storage_errors():
        result = tx.execute(delete(_items).where(_items.c.id == item_id))
    if result.rowcount == 0:
        raise NotFound(f"item {item_id} not found")


def list_items(
    db: Session,
    *,
    name: Optional[str] = None,
    remarks: Optional[str] = None,
    filters: Filters,
) -> Tuple[List[models.Item], Metadata]:
    query = db.query(models.Item)
    if name:
        query = query.filter(models.Item.name.icontains(name, autoescape=True))
    if remarks:
        query = query.filter(models.Item.remarks.icontains(remarks, autoescape=True))

    column = ITEM_SORT_COLUMNS[filters.sort_column()]
    order = column.desc() if filters.sort_descending() else column.asc()

    with storage_errors():
        total = query.count()
        rows = (
            query.order_by(order, models.Item.id.asc())
            .offset(filters.offset())
            .limit(filters.limit())
            .all()
        )
    return rows, calculate_metadata(total, filters.page, filters.page_size)
