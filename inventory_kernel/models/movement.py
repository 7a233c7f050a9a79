"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for the movement journal -- one signed row
    per balance change, pointing at the purchase, transfer, assignment or
    expenditure that caused it.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: rows are never updated or deleted (db/immutability.py).
    - seq is unique and strictly increasing (allocated by SequenceService).
    - quantity is a signed, non-zero delta: Σ quantity per
      (base_id, equipment_type_id) equals the Balance row.

Audit relevance:
    The journal is the source of truth for *why* a balance changed and is
    what the metrics aggregator and reconciliation replay.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class MovementType(str, Enum):
    """Why a balance changed.  Sign of the quantity follows the type."""

    PURCHASE = "purchase"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    ASSIGNMENT = "assignment"
    ASSIGNMENT_RETURN = "assignment_return"
    EXPENDITURE = "expenditure"


INBOUND_MOVEMENTS: frozenset[MovementType] = frozenset({
    MovementType.PURCHASE,
    MovementType.TRANSFER_IN,
    MovementType.ASSIGNMENT_RETURN,
})

# Movements that change ownership (custody changes are excluded)
OWNERSHIP_MOVEMENTS: frozenset[MovementType] = frozenset({
    MovementType.PURCHASE,
    MovementType.TRANSFER_IN,
    MovementType.TRANSFER_OUT,
    MovementType.EXPENDITURE,
})


class InventoryMovement(Base):
    """
    One journal line: a signed quantity change at (base, equipment type).

    Guarantees:
        - quantity > 0 for inbound movement types, < 0 for outbound ones.
        - (source_type, source_id) identifies the business record.
    """

    __tablename__ = "inventory_movements"

    __table_args__ = (
        CheckConstraint("quantity <> 0", name="ck_movements_non_zero"),
        Index("idx_movements_balance_key", "base_id", "equipment_type_id"),
        Index("idx_movements_date", "movement_date"),
        Index("idx_movements_source", "source_type", "source_id"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    movement_type: Mapped[str] = mapped_column(String(30), nullable=False)

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

    # Signed delta applied to the balance
    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Business date the movement counts towards in metrics
    movement_date: Mapped[date] = mapped_column(Date, nullable=False)

    source_type: Mapped[str] = mapped_column(String(30), nullable=False)

    source_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<InventoryMovement #{self.seq} {self.movement_type} {self.quantity:+d}>"
