"""
Module: inventory_kernel.models.transfer
Responsibility: ORM persistence for cross-base transfers.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - from_base_id <> to_base_id, quantity > 0 (check constraints).
    - status limited to the lifecycle values; the transition rules live in
      domain/transfer.py and are enforced by TransferService before any
      status write.
    - Decision columns (approved_*, rejected_*, cancelled_*, completed_*) are
      written once, by the transition that sets them.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString


class TransferModel(TrackedBase):
    """Persistent transfer request and its lifecycle decisions."""

    __tablename__ = "transfers"

    __table_args__ = (
        CheckConstraint("from_base_id <> to_base_id", name="ck_transfers_distinct_bases"),
        CheckConstraint("quantity > 0", name="ck_transfers_quantity_positive"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'completed', 'cancelled', 'rejected')",
            name="ck_transfers_valid_status",
        ),
        Index("idx_transfers_from_base", "from_base_id"),
        Index("idx_transfers_to_base", "to_base_id"),
        Index("idx_transfers_status", "status"),
    )

    from_base_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("bases.id", ondelete="RESTRICT"),
        nullable=False,
    )

    to_base_id: Mapped[UUID] = mapped_column(
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

    transfer_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    rejected_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    cancelled_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    completed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Business date the stock actually moved (drives metrics)
    completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
