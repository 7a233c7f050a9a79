"""
BalanceStore -- the current-state projection of (base, equipment type).

Responsibility:
    Reads, locks and adjusts Balance rows.  Every adjustment happens inside
    the caller's transaction and is paired by the caller with exactly one
    InventoryMovement row (see MovementJournal).

Architecture position:
    Kernel > Services -- imperative shell.  Used by every recorder that
    changes stock.

Invariants enforced:
    - quantity >= 0 after every adjust(); a decrement that would go below
      zero raises InsufficientBalanceError before anything is flushed.
    - Rows are created lazily on the first adjust().  A concurrent create
      of the same pair is resolved with a savepoint and re-select.
    - lock() takes row locks in ascending (base_id, equipment_type_id)
      order.

Failure modes:
    - InsufficientBalanceError -- decrement larger than the held quantity.
    - ValidationError -- increment past the BigInteger column range.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain.requests import MAX_QUANTITY
from inventory_kernel.exceptions import InsufficientBalanceError, ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import Balance
from inventory_kernel.services.base import BaseService

logger = get_logger("services.balance_store")

BalanceKey = tuple[UUID, UUID]


def sort_keys(keys: Iterable[BalanceKey]) -> list[BalanceKey]:
    return sorted(set(keys), key=lambda k: (str(k[0]), str(k[1])))


class BalanceStore(BaseService[Balance]):
    """Flush-only access to the balances table."""

    def _select(self, base_id: UUID, equipment_type_id: UUID, for_update: bool = False):
        stmt = select(Balance).where(
            Balance.base_id == base_id,
            Balance.equipment_type_id == equipment_type_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_balance(self, base_id: UUID, equipment_type_id: UUID) -> int:
        """Current quantity, 0 when the pair has never held stock."""
        row = self._select(base_id, equipment_type_id)
        return row.quantity if row is not None else 0

    def lock(self, keys: Iterable[BalanceKey]) -> dict[BalanceKey, Balance]:
        """
        ``SELECT ... FOR UPDATE`` every existing row for ``keys``.

        Rows are locked one at a time in sorted key order.  Missing pairs
        are simply absent from the result; adjust() creates them.
        """
        locked: dict[BalanceKey, Balance] = {}
        for base_id, equipment_type_id in sort_keys(keys):
            row = self._select(base_id, equipment_type_id, for_update=True)
            if row is not None:
                locked[(base_id, equipment_type_id)] = row
        return locked

    def require(self, base_id: UUID, equipment_type_id: UUID, quantity: int) -> int:
        """Raise InsufficientBalanceError unless ``quantity`` is available."""
        available = self.get_balance(base_id, equipment_type_id)
        if available < quantity:
            raise InsufficientBalanceError(
                str(base_id), str(equipment_type_id), available, quantity
            )
        return available

    @staticmethod
    def _checked(base_id: UUID, equipment_type_id: UUID, current: int, delta: int) -> int:
        new_quantity = current + delta
        if new_quantity < 0:
            raise InsufficientBalanceError(
                str(base_id), str(equipment_type_id), current, -delta
            )
        if new_quantity > MAX_QUANTITY:
            raise ValidationError(
                "quantity", f"balance would exceed {MAX_QUANTITY}", delta
            )
        return new_quantity

    def adjust(self, base_id: UUID, equipment_type_id: UUID, delta: int) -> int:
        """Apply ``delta`` to the pair and return the new quantity."""
        row = self._select(base_id, equipment_type_id, for_update=True)
        current = row.quantity if row is not None else 0
        new_quantity = self._checked(base_id, equipment_type_id, current, delta)

        if row is None:
            row, created = self._create(base_id, equipment_type_id, new_quantity)
            if not created:
                # Lost the create race: re-apply on the winner's row
                new_quantity = self._checked(base_id, equipment_type_id, row.quantity, delta)
                row.quantity = new_quantity
        else:
            row.quantity = new_quantity

        self.session.flush()
        logger.debug(
            "balance_adjusted",
            extra={
                "base_id": str(base_id),
                "equipment_type_id": str(equipment_type_id),
                "delta": delta,
                "quantity": new_quantity,
            },
        )
        return new_quantity

    def _create(
        self, base_id: UUID, equipment_type_id: UUID, quantity: int
    ) -> tuple[Balance, bool]:
        savepoint = self.session.begin_nested()
        try:
            row = Balance(
                base_id=base_id,
                equipment_type_id=equipment_type_id,
                quantity=quantity,
            )
            self.session.add(row)
            self.session.flush()
            savepoint.commit()
            return row, True
        except IntegrityError:
            logger.debug(
                "balance_create_race_retry",
                extra={"base_id": str(base_id), "equipment_type_id": str(equipment_type_id)},
            )
            savepoint.rollback()
            existing = self._select(base_id, equipment_type_id, for_update=True)
            if existing is None:
                raise
            return existing, False

