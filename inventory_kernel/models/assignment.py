"""
Module: inventory_kernel.models.assignment
Responsibility: ORM persistence for personnel custody of equipment.

Invariants enforced:
    - quantity > 0 (check constraint).
    - status is 'active' or 'returned'; 'returned' is terminal.
    - actual_return_date is set exactly when status becomes 'returned'.
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


class AssignmentModel(TrackedBase):
    """Quantity of equipment in the custody of a named person."""

    __tablename__ = "assignments"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_assignments_quantity_positive"),
        CheckConstraint(
            "status IN ('active', 'returned')",
            name="ck_assignments_valid_status",
        ),
        Index("idx_assignments_balance_key", "base_id", "equipment_type_id"),
        Index("idx_assignments_status", "status"),
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

    # Free-text person (rank and name)
    assigned_to: Mapped[str] = mapped_column(String(200), nullable=False)

    assignment_date: Mapped[date] = mapped_column(Date, nullable=False)

    expected_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    actual_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    assigned_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    returned_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
