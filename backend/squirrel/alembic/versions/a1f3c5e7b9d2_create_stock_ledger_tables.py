"""Create items and movement ledger tables.

Revision ID: a1f3c5e7b9d2
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "a1f3c5e7b9d2"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return bool(insp.has_table(table_name))


def _item_fk() -> sa.Column:
    return sa.Column(
        "item_id",
        sa.Integer(),
        sa.ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    if not _table_exists("items"):
        op.create_table(
            "items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("remaining", sa.Integer(), nullable=False),
            sa.Column("remarks", sa.Text(), nullable=False, server_default=""),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
            sa.UniqueConstraint("name", name="uq_items_name"),
            sa.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        )
        op.create_index("ix_items_id", "items", ["id"])

    if not _table_exists("additions"):
        op.create_table(
            "additions",
            sa.Column("id", sa.Integer(), primary_key=True),
            _item_fk(),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("remarks", sa.Text(), nullable=False, server_default=""),
            sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint("quantity > 0", name="ck_additions_quantity_positive"),
        )
        op.create_index("ix_additions_id", "additions", ["id"])
        op.create_index("ix_additions_item_id", "additions", ["item_id"])
        op.create_index("ix_additions_item_added", "additions", ["item_id", "added_at"])

    if not _table_exists("issues"):
        op.create_table(
            "issues",
            sa.Column("id", sa.Integer(), primary_key=True),
            _item_fk(),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("issued_to", sa.String(length=255), nullable=False),
            sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint("quantity > 0", name="ck_issues_quantity_positive"),
        )
        op.create_index("ix_issues_id", "issues", ["id"])
        op.create_index("ix_issues_item_id", "issues", ["item_id"])
        op.create_index("ix_issues_item_issued", "issues", ["item_id", "issued_at"])

    if not _table_exists("removals"):
        op.create_table(
            "removals",
            sa.Column("id", sa.Integer(), primary_key=True),
            _item_fk(),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("remarks", sa.Text(), nullable=False),
            sa.Column("removed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint("quantity > 0", name="ck_removals_quantity_positive"),
        )
        op.create_index("ix_removals_id", "removals", ["id"])
        op.create_index("ix_removals_item_id", "removals", ["item_id"])
        op.create_index("ix_removals_item_removed", "removals", ["item_id", "removed_at"])


def downgrade() -> None:
    for table in ("removals", "issues", "additions", "items"):
        if _table_exists(table):
            op.drop_table(table)
