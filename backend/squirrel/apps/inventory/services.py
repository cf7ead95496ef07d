"""
Stock mutation coordinator.

Every accepted movement writes exactly one ledger row and one
version-guarded update of the item's `remaining`, in one transaction.
The sufficiency precheck is only a fast rejection; the version guard is
what keeps concurrent writers from overdrawing stock.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from squirrel.database import transaction
from squirrel.pagination import Filters, Metadata

from . import items as item_store
from . import models, schemas
from .errors import (
    EditConflict,
    InsufficientStock,
    InvalidInput,
    StorageError,
    storage_errors,
)
from .items import StockDirection
from .ledgers import LEDGERS, Movement, MovementLedger, get_ledger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_movement(
    ledger: MovementLedger,
    *,
    item_id,
    quantity,
    metadata: Optional[str],
) -> None:
    problems = {}
    if not _is_positive_int(item_id):
        problems["item_id"] = "must be a positive integer"
    if not _is_positive_int(quantity):
        problems["quantity"] = "must be a positive integer"
    if ledger.metadata_required and not (metadata or "").strip():
        problems[ledger.metadata_field] = "must be provided"
    if problems:
        raise InvalidInput(problems)


def _check_sufficient_stock(item: models.Item, quantity: int) -> None:
    if item.remaining == 0:
        raise InsufficientStock("item is not available", remaining=item.remaining, requested=quantity)
    if item.remaining < quantity:
        raise InsufficientStock(
            "item is not available in the required quantity",
            remaining=item.remaining,
            requested=quantity,
        )


# ---------------------------------------------------------------------------
# Movements
# ---------------------------------------------------------------------------


def _record_movement(
    db: Session,
    kind: models.MovementKind,
    *,
    item_id: int,
    quantity: int,
    metadata: Optional[str],
) -> Movement:
    ledger = get_ledger(kind)
    _validate_movement(ledger, item_id=item_id, quantity=quantity, metadata=metadata)

    item = item_store.get_item(db, item_id)
    expected_version = item.version

    if ledger.direction is StockDirection.DECREASE:
        try:
            _check_sufficient_stock(item, quantity)
        except InsufficientStock as exc:
            logger.warning(
                "Stock movement rejected: insufficient stock",
                extra={
                    "kind": kind.value,
                    "item_id": item_id,
                    "remaining": exc.remaining,
                    "requested": exc.requested,
                },
            )
            raise

    movement = ledger.build(item_id=item_id, quantity=quantity, metadata=metadata)
    try:
        with storage_errors(), transaction(db):
            ledger.insert(db, movement)
            new_version = item_store.apply_delta(
                db,
                item_id,
                quantity,
                direction=ledger.direction,
                expected_version=expected_version,
            )
    except EditConflict:
        logger.warning(
            "Stock movement rejected: edit conflict",
            extra={"kind": kind.value, "item_id": item_id, "expected_version": expected_version},
        )
        raise
    except StorageError:
        logger.exception(
            "Stock movement failed and was rolled back",
            extra={"kind": kind.value, "item_id": item_id},
        )
        raise

    logger.info(
        "Stock movement recorded",
        extra={
            "kind": kind.value,
            "item_id": item_id,
            "quantity": quantity,
            "version": new_version,
        },
    )
    return movement


def record_addition(db: Session, *, item_id: int, quantity: int, remarks: str = "") -> models.Addition:
    return _record_movement(
        db, models.MovementKind.ADDITION, item_id=item_id, quantity=quantity, metadata=remarks
    )


def record_issue(db: Session, *, item_id: int, quantity: int, issued_to: str) -> models.Issue:
    return _record_movement(
        db, models.MovementKind.ISSUE, item_id=item_id, quantity=quantity, metadata=issued_to
    )


def record_removal(db: Session, *, item_id: int, quantity: int, remarks: str) -> models.Removal:
    return _record_movement(
        db, models.MovementKind.REMOVAL, item_id=item_id, quantity=quantity, metadata=remarks
    )


def list_movements(
    db: Session,
    kind: models.MovementKind,
    *,
    item_id: int,
    filters: Filters,
) -> Tuple[List[Movement], Metadata]:
    if not _is_positive_int(item_id):
        raise InvalidInput({"item_id": "must be a positive integer"})
    return get_ledger(kind).list(db, item_id, filters)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


def create_item(db: Session, *, name: str, quantity: int, remarks: str = "") -> models.Item:
    """Create an item and the addition that mirrors its starting quantity."""
    problems = {}
    if not (name or "").strip():
        problems["name"] = "must be provided"
    if not _is_positive_int(quantity):
        problems["quantity"] = "must be a positive integer"
    if problems:
        raise InvalidInput(problems)

    item = models.Item(name=name.strip(), quantity=quantity, remarks=remarks or "")
    additions = LEDGERS[models.MovementKind.ADDITION]
    with storage_errors(), transaction(db):
        item_store.insert_item(db, item)
        additions.insert(db, additions.build(item_id=item.id, quantity=item.quantity, metadata=remarks))

    logger.info("Item created", extra={"item_id": item.id, "quantity": quantity})
    return item


def get_item(db: Session, item_id: int) -> models.Item:
    return item_store.get_item(db, item_id)


def list_items(
    db: Session,
    *,
    name: Optional[str] = None,
    remarks: Optional[str] = None,
    filters: Filters,
) -> Tuple[List[models.Item], Metadata]:
    return item_store.list_items(db, name=name, remarks=remarks, filters=filters)


def update_item_remaining(
    db: Session,
    item_id: int,
    *,
    remaining: int,
    expected_version: Optional[int] = None,
) -> models.Item:
    """
    Administrative correction of `remaining` without a ledger entry.

    Uses the caller's version when given, otherwise the version just read.
    """
    item = item_store.get_item(db, item_id)
    version = item.version if expected_version is None else expected_version
    try:
        with storage_errors(), transaction(db):
            item_store.update_item(db, item_id, remaining=remaining, expected_version=version)
    except EditConflict:
        logger.warning(
            "Item override rejected: edit conflict",
            extra={"item_id": item_id, "expected_version": version},
        )
        raise

    logger.info("Item remaining overridden", extra={"item_id": item_id, "remaining": remaining})
    return item_store.get_item(db, item_id)


def delete_item(db: Session, item_id: int) -> None:
    with storage_errors(), transaction(db):
        item_store.delete_item(db, item_id)
    logger.info("Item deleted", extra={"item_id": item_id})


def reconcile_item(db: Session, item_id: int) -> schemas.Reconciliation:
    """Compare the cached `remaining` with the sum of the item's ledgers."""
    item = item_store.get_item(db, item_id)
    added = LEDGERS[models.MovementKind.ADDITION].total_quantity(db, item_id)
    issued = LEDGERS[models.MovementKind.ISSUE].total_quantity(db, item_id)
    removed = LEDGERS[models.MovementKind.REMOVAL].total_quantity(db, item_id)
    expected = added - issued - removed
    return schemas.Reconciliation(
        item_id=item.id,
        remaining=item.remaining,
        version=item.version,
        total_added=added,
        total_issued=issued,
        total_removed=removed,
        expected_remaining=expected,
        balanced=expected == item.remaining,
    )


def reconcile_all(db: Session, *, batch_size: int = 500) -> List[schemas.Reconciliation]:
    reports: List[schemas.Reconciliation] = []
    last_id = 0
    while True:
        with storage_errors():
            ids = [
                row[0]
                for row in db.query(models.Item.id)
                .filter(models.Item.id > last_id)
                .order_by(models.Item.id.asc())
                .limit(batch_size)
                .all()
            ]
        if not ids:
            return reports
        for item_id in ids:
            reports.append(reconcile_item(db, item_id))
        last_id = ids[-1]
