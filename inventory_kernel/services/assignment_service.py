"""
AssignmentService -- personnel custody of equipment.

``assign`` takes stock out of the base balance into the custody of a named
person; ``return_assignment`` puts exactly the same quantity back, once.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.assignment import AssignmentStatus, can_return
from inventory_kernel.domain.authority import Actor, BaseAuthority
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import AssignmentRecord
from inventory_kernel.domain.requests import CreateAssignment, ReturnAssignment
from inventory_kernel.exceptions import (
    AssignmentNotActiveError,
    AssignmentNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import AssignmentModel, MovementType
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.reference_data_service import ReferenceDataService

logger = get_logger("services.assignment")


class AssignmentService(BaseService[AssignmentModel]):
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

    def load(self, assignment_id: UUID, for_update: bool = False) -> AssignmentModel:
        stmt = select(AssignmentModel).where(AssignmentModel.id == assignment_id)
        if for_update:
            stmt = stmt.with_for_update()
        assignment = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError(str(assignment_id))
        return assignment

    def get(self, assignment_id: UUID) -> AssignmentRecord:
        return AssignmentRecord.from_model(self.load(assignment_id))

    def _check_authority(self, actor: Actor, base_id: UUID, action: str) -> None:
        if not self._authority.can_act_on_base(actor, base_id):
            raise UnauthorizedError(str(actor.actor_id), action, str(base_id))

    def assign(self, request: CreateAssignment, actor: Actor) -> AssignmentRecord:
        """
        Raises:
            UnauthorizedError: Actor has no authority over the base.
            InsufficientBalanceError: Base holds less than ``quantity``.
        """
        self._reference.require_base(request.base_id)
        self._reference.require_equipment_type(request.equipment_type_id)
        self._check_authority(actor, request.base_id, "assign equipment")
        self._journal.balances.require(
            request.base_id, request.equipment_type_id, request.quantity
        )

        assignment = AssignmentModel(
            base_id=request.base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            assigned_to=request.assigned_to.strip(),
            assignment_date=request.assignment_date,
            expected_return_date=request.expected_return_date,
            status=AssignmentStatus.ACTIVE.value,
            assigned_by_id=actor.actor_id,
            notes=request.notes,
            created_by_id=actor.actor_id,
        )
        self.session.add(assignment)
        self.session.flush()

        self._journal.record(
            movement_type=MovementType.ASSIGNMENT,
            base_id=request.base_id,
            equipment_type_id=request.equipment_type_id,
            quantity=request.quantity,
            movement_date=request.assignment_date,
            source_type="assignment",
            source_id=assignment.id,
            actor_id=actor.actor_id,
        )

        logger.info(
            "assignment_created",
            extra={
                "assignment_id": str(assignment.id),
                "base_id": str(request.base_id),
                "quantity": request.quantity,
            },
        )
        return AssignmentRecord.from_model(assignment)

    def return_assignment(self, request: ReturnAssignment, actor: Actor) -> AssignmentRecord:
        """
        Restore the assigned quantity to the base balance.

        Raises:
            AssignmentNotFoundError, AssignmentNotActiveError, UnauthorizedError,
            ValidationError (explicit return date before the assignment date).
        """
        assignment = self.load(request.assignment_id, for_update=True)
        if not can_return(assignment.status):
            logger.warning(
                "assignment_return_rejected",
                extra={"assignment_id": str(assignment.id), "status": assignment.status},
            )
            raise AssignmentNotActiveError(str(assignment.id), assignment.status)
        self._check_authority(actor, assignment.base_id, "return assignment")
        if (
            request.actual_return_date is not None
            and request.actual_return_date < assignment.assignment_date
        ):
            raise ValidationError(
                "actual_return_date",
                "cannot be before the assignment date",
                request.actual_return_date,
            )

        return_date = request.actual_return_date or self._clock.today()
        self._journal.record(
            movement_type=MovementType.ASSIGNMENT_RETURN,
            base_id=assignment.base_id,
            equipment_type_id=assignment.equipment_type_id,
            quantity=assignment.quantity,
            movement_date=return_date,
            source_type="assignment",
            source_id=assignment.id,
            actor_id=actor.actor_id,
        )

        assignment.status = AssignmentStatus.RETURNED.value
        assignment.actual_return_date = return_date
        assignment.returned_by_id = actor.actor_id
        assignment.updated_by_id = actor.actor_id
        if request.notes:
            assignment.notes = request.notes
        self.session.flush()

        logger.info(
            "assignment_returned",
            extra={"assignment_id": str(assignment.id), "quantity": assignment.quantity},
        )
        return AssignmentRecord.from_model(assignment)
