"""
Module: inventory_kernel.selectors.reconciliation_selector
Responsibility: Cross-checks the three independent views of a balance.

    balance                 the Balance row (0 when absent)
    journal_total           sum of InventoryMovement quantities
    expected_from_records   purchases + completed transfers in
                            - completed transfers out
                            - active assignments - expenditures

All three agree for every pair after any sequence of committed operations.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, union

from inventory_kernel.domain.assignment import AssignmentStatus
from inventory_kernel.domain.metrics import ReconciliationResult
from inventory_kernel.domain.transfer import TransferStatus
from inventory_kernel.models import (
    AssignmentModel,
    Balance,
    Expenditure,
    InventoryMovement,
    Purchase,
    TransferModel,
)
from inventory_kernel.selectors.base import BaseSelector


class ReconciliationSelector(BaseSelector):
    def _sum(self, column, *criteria) -> int:
        stmt = select(func.coalesce(func.sum(column), 0)).where(*criteria)
        return int(self.session.execute(stmt).scalar_one())

    def reconcile(self, base_id: UUID, equipment_type_id: UUID) -> ReconciliationResult:
        balance = self.session.execute(
            select(Balance.quantity).where(
                Balance.base_id == base_id,
                Balance.equipment_type_id == equipment_type_id,
            )
        ).scalar_one_or_none() or 0

        journal_total = self._sum(
            InventoryMovement.quantity,
            InventoryMovement.base_id == base_id,
            InventoryMovement.equipment_type_id == equipment_type_id,
        )

        completed = TransferStatus.COMPLETED.value
        expected = (
            self._sum(
                Purchase.quantity,
                Purchase.base_id == base_id,
                Purchase.equipment_type_id == equipment_type_id,
            )
            + self._sum(
                TransferModel.quantity,
                TransferModel.to_base_id == base_id,
                TransferModel.equipment_type_id == equipment_type_id,
                TransferModel.status == completed,
            )
            - self._sum(
                TransferModel.quantity,
                TransferModel.from_base_id == base_id,
                TransferModel.equipment_type_id == equipment_type_id,
                TransferModel.status == completed,
            )
            - self._sum(
                AssignmentModel.quantity,
                AssignmentModel.base_id == base_id,
                AssignmentModel.equipment_type_id == equipment_type_id,
                AssignmentModel.status == AssignmentStatus.ACTIVE.value,
            )
            - self._sum(
                Expenditure.quantity,
                Expenditure.base_id == base_id,
                Expenditure.equipment_type_id == equipment_type_id,
            )
        )

        return ReconciliationResult(
            base_id=base_id,
            equipment_type_id=equipment_type_id,
            balance=balance,
            journal_total=journal_total,
            expected_from_records=expected,
        )

    def reconcile_all(self) -> list[ReconciliationResult]:
        """Every pair that has a balance row or a journal row."""
        pairs = self.session.execute(
            union(
                select(Balance.base_id, Balance.equipment_type_id),
                select(InventoryMovement.base_id, InventoryMovement.equipment_type_id),
            )
        ).all()
        return [self.reconcile(UUID(str(b)), UUID(str(t))) for b, t in pairs]
