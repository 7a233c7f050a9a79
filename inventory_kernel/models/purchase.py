"""
Module: inventory_kernel.models.purchase
Responsibility: ORM persistence for purchases (stock acquired at a base).

Invariants enforced:
    - quantity > 0, unit_price > 0 (check constraints; request validation
      rejects first).
    - total_amount == quantity * unit_price, fixed at creation.
    - Immutable after creation: no update, no delete (db/immutability.py).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
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


class Purchase(TrackedBase):
    """Stock bought from a supplier and received at a base."""

    __tablename__ = "purchases"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchases_quantity_positive"),
        CheckConstraint("unit_price > 0", name="ck_purchases_unit_price_positive"),
        Index("idx_purchases_base_date", "base_id", "purchase_date"),
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

    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    supplier: Mapped[str] = mapped_column(String(200), nullable=False)

    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
