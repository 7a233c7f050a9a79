"""
Module: inventory_kernel.models.balance
Responsibility: ORM persistence for the balance projection -- the current
    on-hand quantity per (base, equipment type).

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per (base_id, equipment_type_id) (unique constraint).
    - quantity >= 0 (check constraint; BalanceStore rejects first with
      InsufficientBalanceError).
    - Rows are created lazily on first increment and never deleted
      (db/immutability.py).

Failure modes:
    - IntegrityError on a concurrent lazy-create race (BalanceStore handles
      it with a savepoint and re-select).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class Balance(Base):
    """
    Current quantity of one equipment type at one base.

    Contract:
        Only BalanceStore mutates this row, always under a row lock and
        always together with an InventoryMovement in the same transaction.
    """

    __tablename__ = "balances"

    __table_args__ = (
        UniqueConstraint(
            "base_id", "equipment_type_id", name="uq_balances_base_equipment"
        ),
        CheckConstraint("quantity >= 0", name="ck_balances_non_negative"),
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

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Balance {self.base_id}/{self.equipment_type_id}={self.quantity}>"
