"""
Append-only movement ledgers.

Additions, issues and removals share one contract; a `MovementLedger`
describes what differs per kind (table, timestamp column, metadata field,
direction of the stock change). Ledger methods never commit or roll back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from squirrel.pagination import DEFAULT_PAGE_SIZE, Filters, Metadata, calculate_metadata, safelist

from . import models
from .errors import storage_errors
from .items import StockDirection

Movement = Union[models.Addition, models.Issue, models.Removal]


@dataclass(frozen=True)
class MovementLedger:
    kind: models.MovementKind
    model: Type[Movement]
    name: str
    plural: str
    timestamp_field: str
    metadata_field: str
    metadata_required: bool
    direction: StockDirection

    @property
    def sort_safelist(self) -> List[str]:
        return safelist("id", self.timestamp_field)

    @property
    def default_sort(self) -> str:
        return f"-{self.timestamp_field}"

    def filters(
        self,
        *,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: Optional[str] = None,
    ) -> Filters:
        return Filters(
            page=page,
            page_size=page_size,
            sort=sort or self.default_sort,
            sort_safelist=self.sort_safelist,
        ).validate()

    def build(self, *, item_id: int, quantity: int, metadata: Optional[str]) -> Movement:
        return self.model(
            item_id=item_id,
            quantity=quantity,
            **{self.metadata_field: (metadata or "").strip()},
        )

    def insert(self, tx: Session, movement: Movement) -> Movement:
        """Add one row inside the caller's transaction and assign id + timestamp."""
        with storage_errors():
            tx.add(movement)
            tx.flush()
        return movement

    def list(self, db: Session, item_id: int, filters: Filters) -> Tuple[List[Movement], Metadata]:
        query = db.query(self.model).filter(self.model.item_id == item_id)

        column = getattr(self.model, filters.sort_column())
        order = column.desc() if filters.sort_descending() else column.asc()
        tie_break = self.model.id.desc() if filters.sort_descending() else self.model.id.asc()

        with storage_errors():
            total = query.count()
            rows = (
                query.order_by(order, tie_break)
                .offset(filters.offset())
                .limit(filters.limit())
                .all()
            )
        return rows, calculate_metadata(total, filters.page, filters.page_size)

    def total_quantity(self, db: Session, item_id: int) -> int:
        with storage_errors():
            total = (
                db.query(func.coalesce(func.sum(self.model.quantity), 0))
                .filter(self.model.item_id == item_id)
                .scalar()
            )
        return int(total or 0)


LEDGERS: Dict[models.MovementKind, MovementLedger] = {
    models.MovementKind.ADDITION: MovementLedger(
        kind=models.MovementKind.ADDITION,
        model=models.Addition,
        name="addition",
        plural="additions",
        timestamp_field="added_at",
        metadata_field="remarks",
        metadata_required=False,
        direction=StockDirection.INCREASE,
    ),
    models.MovementKind.ISSUE: MovementLedger(
        kind=models.MovementKind.ISSUE,
        model=models.Issue,
        name="issue",
        plural="issues",
        timestamp_field="issued_at",
        metadata_field="issued_to",
        metadata_required=True,
        direction=StockDirection.DECREASE,
    ),
    models.MovementKind.REMOVAL: MovementLedger(
        kind=models.MovementKind.REMOVAL,
        model=models.Removal,
        name="removal",
        plural="removals",
        timestamp_field="removed_at",
        metadata_field="remarks",
        metadata_required=True,
        direction=StockDirection.DECREASE,
    ),
}


def get_ledger(kind: models.MovementKind) -> MovementLedger:
    return LEDGERS[models.MovementKind(kind)]
