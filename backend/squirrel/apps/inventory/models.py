from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declared_attr

from squirrel.database import Base

ITEM_INITIAL_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MovementKind(str, enum.Enum):
    ADDITION = "ADDITION"
    ISSUE = "ISSUE"
    REMOVAL = "REMOVAL"


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("name", name="uq_items_name"),
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    # lifetime total ever received at creation; never touched by movements
    quantity = Column(Integer, nullable=False)
    remaining = Column(Integer, nullable=False)
    remarks = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    version = Column(Integer, nullable=False, default=ITEM_INITIAL_VERSION)


class _MovementColumns:
    """Shape shared by every ledger table. Rows are insert-only."""

    id = Column(Integer, primary_key=True, index=True)
    quantity = Column(Integer, nullable=False)

    @declared_attr
    def item_id(cls):
        return Column(
            Integer,
            ForeignKey("items.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class Addition(_MovementColumns, Base):
    __tablename__ = "additions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_additions_quantity_positive"),
        Index("ix_additions_item_added", "item_id", "added_at"),
    )

    remarks = Column(Text, nullable=False, default="")
    added_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Issue(_MovementColumns, Base):
    __tablename__ = "issues"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_issues_quantity_positive"),
        Index("ix_issues_item_issued", "item_id", "issued_at"),
    )

    issued_to = Column(String(255), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Removal(_MovementColumns, Base):
    __tablename__ = "removals"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_removals_quantity_positive"),
        Index("ix_removals_item_removed", "item_id", "removed_at"),
    )

    remarks = Column(Text, nullable=False)
    removed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
