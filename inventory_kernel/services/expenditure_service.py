"""
ExpenditureService -- permanent consumption of stock at a base.

Expenditures are terminal: there is no reversal and no delete.  The
recording actor is stored as the approver.
"""

from __future__ import annotations

from inventory_kernel.domain.authority import Actor, BaseAuthority
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import ExpenditureRecord
from inventory_kernel.domain.requests import RecordExpenditure
from inventory_kernel.exceptions import UnauthorizedError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import Expenditure, MovementType
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.reference_data_service import ReferenceDataService

logger = get_logger("services.expenditure")


class ExpenditureService(BaseService[Expenditure]):
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

    def record_expenditure(
        self, request: RecordExpenditure, actor: Actor
    ) -> ExpenditureRecord:
        self._reference.require_base(request.base_id)
        self._reference.require_equipment_type(request.equipment_type_id)
        if not self._authority.can_act_on_base(actor, request.base_id):
            raise UnauthorizedError(
                str(actor.actor_id), "record expenditure", str(request.base_id)
            )
        self._journal.balances.require(
            request.base_id, request.equipment_type_id, request.quantity
        )

        expenditure = Expenditure(
            base_id=request.base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            reason=request.reason.strip(),
            expenditure_date=request.expenditure_date,
            approved_by_id=actor.actor_id,
            notes=request.notes,
            created_by_id=actor.actor_id,
        )
        self.session.add(expenditure)
        self.session.flush()

        self._journal.record(
            movement_type=MovementType.EXPENDITURE,
            base_id=request.base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            movement_date=request.expenditure_date,
            source_type="expenditure",
            source_id=expenditure.id,
            actor_id=actor.actor_id,
        )

        logger.info(
            "expenditure_recorded",
            extra={
                "expenditure_id": str(expenditure.id),
                "base_id": str(request.base_id),
                "quantity": request.quantity,
            },
        )
        return ExpenditureRecord.from_model(expenditure)
