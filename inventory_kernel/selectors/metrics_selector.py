"""
Module: inventory_kernel.selectors.metrics_selector
Responsibility: Dashboard metrics for a slice of the ledger -- a set of
    bases, optionally one equipment type, and an inclusive date range.

Definitions (all from the movement journal):
    purchases, transfers_in, transfers_out, assigned, expended
        absolute sums of journal quantities dated inside the range.
    net_movement
        purchases + transfers_in - transfers_out - expended.
        Assignments change custody, not ownership, and are excluded.
    opening_balance
        Holdings before ``start_date``.  Holdings are on-hand plus
        outstanding assigned quantity; the opening figure is replayed
        backward from current holdings by removing every ownership movement
        dated on or after ``start_date``.  Without a start date it is 0.
    closing_balance
        opening_balance + net_movement.

Read-only: never mutates anything.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select

from inventory_kernel.domain.assignment import AssignmentStatus
from inventory_kernel.domain.metrics import InventoryMetrics
from inventory_kernel.domain.requests import DateRange
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import (
    OWNERSHIP_MOVEMENTS,
    AssignmentModel,
    Balance,
    InventoryMovement,
    MovementType,
)
from inventory_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.metrics")

_OWNERSHIP_VALUES = [m.value for m in OWNERSHIP_MOVEMENTS]


class MetricsSelector(BaseSelector):
    def _scoped(self, stmt: Select, model, base_ids: list[UUID], equipment_type_id):
        stmt = stmt.where(model.base_id.in_(base_ids))
        if equipment_type_id is not None:
            stmt = stmt.where(model.equipment_type_id == equipment_type_id)
        return stmt

    def _sums_by_type(
        self, base_ids: list[UUID], equipment_type_id: UUID | None, date_range: DateRange
    ) -> dict[str, int]:
        stmt = select(
            InventoryMovement.movement_type,
            func.coalesce(func.sum(InventoryMovement.quantity), 0),
        ).group_by(InventoryMovement.movement_type)
        stmt = self._scoped(stmt, InventoryMovement, base_ids, equipment_type_id)
        if date_range.start_date is not None:
            stmt = stmt.where(InventoryMovement.movement_date >= date_range.start_date)
        if date_range.end_date is not None:
            stmt = stmt.where(InventoryMovement.movement_date <= date_range.end_date)
        return {row[0]: int(row[1]) for row in self.session.execute(stmt)}

    def _on_hand(self, base_ids: list[UUID], equipment_type_id: UUID | None) -> int:
        stmt = select(func.coalesce(func.sum(Balance.quantity), 0))
        stmt = self._scoped(stmt, Balance, base_ids, equipment_type_id)
        return int(self.session.execute(stmt).scalar_one())

    def _assigned_outstanding(
        self, base_ids: list[UUID], equipment_type_id: UUID | None
    ) -> int:
        stmt = select(func.coalesce(func.sum(AssignmentModel.quantity), 0)).where(
            AssignmentModel.status == AssignmentStatus.ACTIVE.value
        )
        stmt = self._scoped(stmt, AssignmentModel, base_ids, equipment_type_id)
        return int(self.session.execute(stmt).scalar_one())

    def _ownership_since(
        self, base_ids: list[UUID], equipment_type_id: UUID | None, start_date
    ) -> int:
        stmt = select(func.coalesce(func.sum(InventoryMovement.quantity), 0)).where(
            InventoryMovement.movement_type.in_(_OWNERSHIP_VALUES),
            InventoryMovement.movement_date >= start_date,
        )
        stmt = self._scoped(stmt, InventoryMovement, base_ids, equipment_type_id)
        return int(self.session.execute(stmt).scalar_one())

    def get_metrics(
        self,
        base_ids: frozenset[UUID],
        equipment_type_id: UUID | None = None,
        date_range: DateRange | None = None,
    ) -> InventoryMetrics:
        """
        Metrics over ``base_ids`` (already resolved against the caller's
        authority).  An empty base set yields all-zero metrics.
        """
        date_range = date_range or DateRange()
        if not base_ids:
            return InventoryMetrics.empty()
        bases = sorted(base_ids, key=str)

        sums = self._sums_by_type(bases, equipment_type_id, date_range)
        purchases = sums.get(MovementType.PURCHASE.value, 0)
        transfers_in = sums.get(MovementType.TRANSFER_IN.value, 0)
        transfers_out = -sums.get(MovementType.TRANSFER_OUT.value, 0)
        assigned = -sums.get(MovementType.ASSIGNMENT.value, 0)
        expended = -sums.get(MovementType.EXPENDITURE.value, 0)
        net_movement = purchases + transfers_in - transfers_out - expended

        on_hand = self._on_hand(bases, equipment_type_id)
        outstanding = self._assigned_outstanding(bases, equipment_type_id)

        if date_range.start_date is None:
            opening = 0
        else:
            holdings = on_hand + outstanding
            opening = holdings - self._ownership_since(
                bases, equipment_type_id, date_range.start_date
            )

        metrics = InventoryMetrics(
            opening_balance=opening,
            closing_balance=opening + net_movement,
            net_movement=net_movement,
            purchases=purchases,
            transfers_in=transfers_in,
            transfers_out=transfers_out,
            assigned=assigned,
            expended=expended,
            on_hand=on_hand,
            assigned_outstanding=outstanding,
            base_ids=tuple(bases),
        )
        logger.debug(
            "metrics_computed",
            extra={
                "base_count": len(bases),
                "net_movement": net_movement,
                "opening_balance": opening,
            },
        )
        return metrics
