"""
TransferService -- cross-base transfer lifecycle.

Responsibility:
    Creates transfer requests and drives them through the lifecycle in
    ``domain/transfer.py``.  Stock moves on exactly one edge,
    ``approved -> completed``, where the source is decremented and the
    destination incremented in the same flush window.

Architecture position:
    Kernel > Services -- imperative shell.  Authorization is delegated to
    the injected BaseAuthority.

Invariants enforced:
    - Every status write is preceded by ``can_transition``; a repeated
      approve/complete/cancel/reject fails with
      InvalidTransferTransitionError and never applies stock twice.
    - The transfer row is read with ``FOR UPDATE`` before any transition.
    - complete() re-validates the source balance under lock.

Failure modes:
    - TransferNotFoundError, InvalidTransferTransitionError,
      UnauthorizedError, InsufficientBalanceError.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.authority import Actor, BaseAuthority
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import TransferRecord
from inventory_kernel.domain.requests import CreateTransfer
from inventory_kernel.domain.transfer import TransferStatus, can_transition, moves_stock
from inventory_kernel.exceptions import (
    InvalidTransferTransitionError,
    TransferNotFoundError,
    UnauthorizedError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import MovementType, TransferModel
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.reference_data_service import ReferenceDataService

logger = get_logger("services.transfer")


class TransferService(BaseService[TransferModel]):
    def __init__(
        self,
        session,
        clock: Clock,
        authority: BaseAuthority,
        journal: MovementJournal | None = None,
    ):
        super().__init__(session)
        self._clock = clock
        self._authority = authority
        self._journal = journal or MovementJournal(session, clock)
        self._reference = ReferenceDataService(session)

    # -- reads ------------------------------------------------------------

    def load(self, transfer_id: UUID, for_update: bool = False) -> TransferModel:
        stmt = select(TransferModel).where(TransferModel.id == transfer_id)
        if for_update:
            stmt = stmt.with_for_update()
        transfer = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if transfer is None:
            raise TransferNotFoundError(str(transfer_id))
        return transfer

    def get(self, transfer_id: UUID) -> TransferRecord:
        return TransferRecord.from_model(self.load(transfer_id))

    # -- create -----------------------------------------------------------

    def create(self, request: CreateTransfer, actor: Actor) -> TransferRecord:
        """
        Write a pending transfer.  No balance effect.

        The source balance is checked here as an early rejection; the
        binding check happens again at completion.
        """
        self._reference.require_base(request.from_base_id)
        self._reference.require_base(request.to_base_id)
        self._reference.require_equipment_type(request.equipment_type_id)
        self._journal.balances.require(
            request.from_base_id, request.equipment_type_id, request.quantity
        )

        transfer = TransferModel(
            from_base_id=request.from_base_id,
            to_base_id=request.to_base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            transfer_date=request.transfer_date,
            status=TransferStatus.PENDING.value,
            notes=request.notes,
            created_by_id=actor.actor_id,
        )
        self.session.add(transfer)
        self.session.flush()

        logger.info(
            "transfer_created",
            extra={
                "transfer_id": str(transfer.id),
                "from_base_id": str(request.from_base_id),
                "to_base_id": str(request.to_base_id),
                "quantity": request.quantity,
            },
        )
        return TransferRecord.from_model(transfer)

    # -- transitions ------------------------------------------------------

    def _check_transition(self, transfer: TransferModel, target: TransferStatus) -> None:
        if not can_transition(transfer.status, target):
            logger.warning(
                "transfer_transition_rejected",
                extra={
                    "transfer_id": str(transfer.id),
                    "current_status": transfer.status,
                    "target_status": target.value,
                },
            )
            raise InvalidTransferTransitionError(
                str(transfer.id), transfer.status, target.value
            )

    def _check_authority(self, actor: Actor, base_id: UUID, action: str) -> None:
        if not self._authority.can_act_on_base(actor, base_id):
            raise UnauthorizedError(str(actor.actor_id), action, str(base_id))

    def _can_cancel(self, transfer: TransferModel, actor: Actor) -> bool:
        if actor.is_admin or transfer.created_by_id == actor.actor_id:
            return True
        return actor.is_commander and (
            self._authority.can_act_on_base(actor, transfer.from_base_id)
            or self._authority.can_act_on_base(actor, transfer.to_base_id)
        )

    def _mark(self, transfer: TransferModel, target: TransferStatus, actor: Actor) -> None:
        transfer.status = target.value
        transfer.updated_by_id = actor.actor_id
        self.session.flush()
        logger.info(
            f"transfer_{target.value}",
            extra={"transfer_id": str(transfer.id), "status": target.value},
        )

    def approve(self, transfer_id: UUID, actor: Actor) -> TransferRecord:
        transfer = self.load(transfer_id, for_update=True)
        self._check_transition(transfer, TransferStatus.APPROVED)
        self._check_authority(actor, transfer.from_base_id, "approve transfer")

        transfer.approved_by_id = actor.actor_id
        transfer.approved_at = self._clock.now()
        self._mark(transfer, TransferStatus.APPROVED, actor)
        return TransferRecord.from_model(transfer)

    def reject(self, transfer_id: UUID, actor: Actor) -> TransferRecord:
        transfer = self.load(transfer_id, for_update=True)
        self._check_transition(transfer, TransferStatus.REJECTED)
        self._check_authority(actor, transfer.from_base_id, "reject transfer")

        transfer.rejected_by_id = actor.actor_id
        transfer.rejected_at = self._clock.now()
        self._mark(transfer, TransferStatus.REJECTED, actor)
        return TransferRecord.from_model(transfer)

    def cancel(self, transfer_id: UUID, actor: Actor) -> TransferRecord:
        transfer = self.load(transfer_id, for_update=True)
        self._check_transition(transfer, TransferStatus.CANCELLED)
        if not self._can_cancel(transfer, actor):
            raise UnauthorizedError(str(actor.actor_id), "cancel transfer")

        transfer.cancelled_by_id = actor.actor_id
        transfer.cancelled_at = self._clock.now()
        self._mark(transfer, TransferStatus.CANCELLED, actor)
        return TransferRecord.from_model(transfer)

    def complete(
        self,
        transfer_id: UUID,
        actor: Actor,
        completion_date: date | None = None,
    ) -> TransferRecord:
        """
        Move the stock: source down, destination up, two journal rows.

        ``completion_date`` is the business date both journal rows count
        towards; it defaults to the clock's today.
        """
        transfer = self.load(transfer_id, for_update=True)
        self._check_transition(transfer, TransferStatus.COMPLETED)
        self._check_authority(actor, transfer.to_base_id, "complete transfer")

        if moves_stock(transfer.status, TransferStatus.COMPLETED):
            movement_date = completion_date or self._clock.today()
            self._journal.balances.lock([
                (transfer.from_base_id, transfer.equipment_type_id),
                (transfer.to_base_id, transfer.equipment_type_id),
            ])
            self._journal.record(
                movement_type=MovementType.TRANSFER_OUT,
                base_id=transfer.from_base_id,
                equipment_type_id=transfer.equipment_type_id,
                quantity=transfer.quantity,
                movement_date=movement_date,
                source_type="transfer",
                source_id=transfer.id,
                actor_id=actor.actor_id,
            )
            self._journal.record(
                movement_type=MovementType.TRANSFER_IN,
                base_id=transfer.to_base_id,
                equipment_type_id=transfer.equipment_type_id,
                quantity=transfer.quantity,
                movement_date=movement_date,
                source_type="transfer",
                source_id=transfer.id,
                actor_id=actor.actor_id,
            )
            transfer.completion_date = movement_date

        transfer.completed_by_id = actor.actor_id
        transfer.completed_at = self._clock.now()
        self._mark(transfer, TransferStatus.COMPLETED, actor)
        return TransferRecord.from_model(transfer)
