"""
MovementJournal -- append-only writer for InventoryMovement rows.

Responsibility:
    Applies a signed quantity to the balance store and records the matching
    journal row in the same flush window.  This is the only code path that
    changes a Balance, which is what keeps ``Balance == sum(journal)`` for
    every pair.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by PurchaseService, TransferService, AssignmentService and
    ExpenditureService.

Invariants enforced:
    - Exactly one journal row per balance change, never a zero quantity.
    - The sign follows the movement type: inbound types are positive,
      everything else negative.
    - seq comes from SequenceService (locked counter row).

Failure modes:
    - InsufficientBalanceError from BalanceStore.adjust(); nothing is
      written to the journal in that case.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from inventory_kernel.domain.clock import Clock
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import INBOUND_MOVEMENTS, InventoryMovement, MovementType
from inventory_kernel.services.balance_store import BalanceStore
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")


class MovementJournal(BaseService[InventoryMovement]):
    def __init__(
        self,
        session,
        clock: Clock,
        balances: BalanceStore | None = None,
        sequences: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock
        self.balances = balances or BalanceStore(session)
        self._sequences = sequences or SequenceService(session)

    def record(
        self,
        *,
        movement_type: MovementType,
        base_id: UUID,
        equipment_type_id: UUID,
        quantity: int,
        movement_date: date,
        source_type: str,
        source_id: UUID,
        actor_id: UUID,
    ) -> InventoryMovement:
        """
        Move ``quantity`` (always positive here) in the direction implied by
        ``movement_type`` and append the journal row.
        """
        if quantity <= 0:
            raise ValueError(f"movement quantity must be positive, got {quantity}")
        delta = quantity if movement_type in INBOUND_MOVEMENTS else -quantity

        new_balance = self.balances.adjust(base_id, equipment_type_id, delta)

        movement = InventoryMovement(
            seq=self._sequences.next_value(SequenceService.INVENTORY_MOVEMENT),
            movement_type=movement_type.value,
            base_id=base_id,
            equipment_type_id=equipment_type_id,
            quantity=delta,
            movement_date=movement_date,
            source_type=source_type,
            source_id=source_id,
            actor_id=actor_id,
            recorded_at=self._clock.now(),
        )
        self.session.add(movement)
        self.session.flush()

        logger.info(
            "movement_recorded",
            extra={
                "seq": movement.seq,
                "movement_type": movement_type.value,
                "base_id": str(base_id),
                "equipment_type_id": str(equipment_type_id),
                "quantity": delta,
                "balance": new_balance,
                "source_type": source_type,
                "source_id": str(source_id),
            },
        )
        return movement
