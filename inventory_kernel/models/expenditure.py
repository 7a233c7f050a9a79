"""
Module: inventory_kernel.models.expenditure
Responsibility: ORM persistence for expenditures (permanent consumption).

Invariants enforced:
    - quantity > 0 (check constraint).
    - Terminal and immutable: no update, no delete, no reversal.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString


class Expenditure(TrackedBase):
    """Quantity consumed or written off at a base."""

    __tablename__ = "expenditures"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_expenditures_quantity_positive"),
        Index("idx_expenditures_base_date", "base_id", "expenditure_date"),
    )

    base_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("bases.id", ondelete="RESTRICT"),
        nullable=False,
    )

    equipment_type_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("equipment_types.id", ondelete="RESTRICT"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    reason: Mapped[str] = mapped_column(String(500), nullable=False)

    expenditure_date: Mapped[date] = mapped_column(Date, nullable=False)

    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
