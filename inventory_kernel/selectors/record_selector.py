"""
Module: inventory_kernel.selectors.record_selector
Responsibility: Filtered, paginated listings of purchases, transfers,
    assignments, expenditures and current balances, single purchase and
    expenditure lookups, plus the raw movement journal.

Visibility:
    Every listing takes ``visible_base_ids``.  ``None`` means unrestricted
    (admins); otherwise only records of those bases are returned.  A
    transfer is visible when either side is.  Filtering on a base outside
    the visible set yields an empty page.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, or_, select

from inventory_kernel.domain.assignment import AssignmentStatus
from inventory_kernel.domain.dtos import (
    AssignmentRecord,
    BalanceRecord,
    ExpenditureRecord,
    MovementRecord,
    Page,
    PurchaseRecord,
    TransferRecord,
)
from inventory_kernel.domain.requests import ListQuery
from inventory_kernel.domain.transfer import TransferStatus
from inventory_kernel.exceptions import (
    ExpenditureNotFoundError,
    PurchaseNotFoundError,
    ValidationError,
)
from inventory_kernel.models import (
    AssignmentModel,
    Balance,
    EquipmentType,
    Expenditure,
    InventoryMovement,
    MilitaryBase,
    Purchase,
    TransferModel,
)
from inventory_kernel.selectors.base import BaseSelector

T = TypeVar("T")


def _check_status(status: str | None, allowed: type | None) -> None:
    if status is None:
        return
    if allowed is None:
        raise ValidationError("status", "this listing has no status filter", status)
    try:
        allowed(status)
    except ValueError:
        raise ValidationError("status", f"unknown status {status!r}", status) from None


def _check_no_search(query: ListQuery) -> None:
    if query.search is not None:
        raise ValidationError("search", "this listing has no name search", query.search)


class RecordSelector(BaseSelector):
    """Read-only listings over the ledger's record tables."""

    def _page(
        self,
        stmt: Select,
        query: ListQuery,
        order_by: tuple,
        to_dto: Callable[[Any], T],
    ) -> Page[T]:
        total = self.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        rows = self.session.execute(
            stmt.order_by(*order_by).offset(query.offset).limit(query.limit)
        ).scalars()
        return Page(
            items=tuple(to_dto(row) for row in rows),
            total=total,
            page=query.page,
            limit=query.limit,
        )

    @staticmethod
    def _date_filter(stmt: Select, column, query: ListQuery) -> Select:
        if query.date_range.start_date is not None:
            stmt = stmt.where(column >= query.date_range.start_date)
        if query.date_range.end_date is not None:
            stmt = stmt.where(column <= query.date_range.end_date)
        return stmt

    @staticmethod
    def _single_base_filter(
        stmt: Select,
        column,
        query: ListQuery,
        visible_base_ids: frozenset[UUID] | None,
    ) -> Select:
        if visible_base_ids is not None:
            stmt = stmt.where(column.in_(list(visible_base_ids)))
        if query.base_id is not None:
            stmt = stmt.where(column == query.base_id)
        return stmt

    def list_purchases(
        self, query: ListQuery, visible_base_ids: frozenset[UUID] | None = None
    ) -> Page[PurchaseRecord]:
        _check_status(query.status, None)
        _check_no_search(query)
        stmt = select(Purchase)
        stmt = self._single_base_filter(stmt, Purchase.base_id, query, visible_base_ids)
        if query.equipment_type_id is not None:
            stmt = stmt.where(Purchase.equipment_type_id == query.equipment_type_id)
        stmt = self._date_filter(stmt, Purchase.purchase_date, query)
        return self._page(
            stmt,
            query,
            (Purchase.purchase_date.desc(), Purchase.created_at.desc(), Purchase.id),
            PurchaseRecord.from_model,
        )

    def list_transfers(
        self, query: ListQuery, visible_base_ids: frozenset[UUID] | None = None
    ) -> Page[TransferRecord]:
        _check_status(query.status, TransferStatus)
        _check_no_search(query)
        stmt = select(TransferModel)
        if visible_base_ids is not None:
            visible = list(visible_base_ids)
            stmt = stmt.where(
                or_(
                    TransferModel.from_base_id.in_(visible),
                    TransferModel.to_base_id.in_(visible),
                )
            )
        if query.base_id is not None:
            stmt = stmt.where(
                or_(
                    TransferModel.from_base_id == query.base_id,
                    TransferModel.to_base_id == query.base_id,
                )
            )
        if query.equipment_type_id is not None:
            stmt = stmt.where(TransferModel.equipment_type_id == query.equipment_type_id)
        if query.status is not None:
            stmt = stmt.where(TransferModel.status == query.status)
        stmt = self._date_filter(stmt, TransferModel.transfer_date, query)
        return self._page(
            stmt,
            query,
            (
                TransferModel.transfer_date.desc(),
                TransferModel.created_at.desc(),
                TransferModel.id,
            ),
            TransferRecord.from_model,
        )

    def list_assignments(
        self, query: ListQuery, visible_base_ids: frozenset[UUID] | None = None
    ) -> Page[AssignmentRecord]:
        _check_status(query.status, AssignmentStatus)
        _check_no_search(query)
        stmt = select(AssignmentModel)
        stmt = self._single_base_filter(stmt, AssignmentModel.base_id, query, visible_base_ids)
        if query.equipment_type_id is not None:
            stmt = stmt.where(AssignmentModel.equipment_type_id == query.equipment_type_id)
        if query.status is not None:
            stmt = stmt.where(AssignmentModel.status == query.status)
        stmt = self._date_filter(stmt, AssignmentModel.assignment_date, query)
        return self._page(
            stmt,
            query,
            (
                AssignmentModel.assignment_date.desc(),
                AssignmentModel.created_at.desc(),
                AssignmentModel.id,
            ),
            AssignmentRecord.from_model,
        )

    def list_expenditures(
        self, query: ListQuery, visible_base_ids: frozenset[UUID] | None = None
    ) -> Page[ExpenditureRecord]:
        _check_status(query.status, None)
        _check_no_search(query)
        stmt = select(Expenditure)
        stmt = self._single_base_filter(stmt, Expenditure.base_id, query, visible_base_ids)
        if query.equipment_type_id is not None:
            stmt = stmt.where(Expenditure.equipment_type_id == query.equipment_type_id)
        stmt = self._date_filter(stmt, Expenditure.expenditure_date, query)
        return self._page(
            stmt,
            query,
            (
                Expenditure.expenditure_date.desc(),
                Expenditure.created_at.desc(),
                Expenditure.id,
            ),
            ExpenditureRecord.from_model,
        )

    def list_movements(
        self, base_id: UUID, equipment_type_id: UUID | None = None
    ) -> list[MovementRecord]:
        """Journal rows for a base in ``seq`` order."""
        stmt = select(InventoryMovement).where(InventoryMovement.base_id == base_id)
        if equipment_type_id is not None:
            stmt = stmt.where(InventoryMovement.equipment_type_id == equipment_type_id)
        rows = self.session.execute(stmt.order_by(InventoryMovement.seq)).scalars()
        return [MovementRecord.from_model(row) for row in rows]

    def list_balances(
        self, query: ListQuery, visible_base_ids: frozenset[UUID] | None = None
    ) -> Page[BalanceRecord]:
        """
        Current inventory: one row per (base, equipment type) balance.

        ``query.search`` matches a fragment of the equipment type name,
        case-insensitively.  Balances are current state, so status and date
        filters are rejected.
        """
        _check_status(query.status, None)
        if query.date_range.start_date is not None or query.date_range.end_date is not None:
            raise ValidationError("date_range", "balances have no date filter", query.date_range)

        stmt = (
            select(Balance, MilitaryBase, EquipmentType)
            .join(MilitaryBase, MilitaryBase.id == Balance.base_id)
            .join(EquipmentType, EquipmentType.id == Balance.equipment_type_id)
        )
        stmt = self._single_base_filter(stmt, Balance.base_id, query, visible_base_ids)
        if query.equipment_type_id is not None:
            stmt = stmt.where(Balance.equipment_type_id == query.equipment_type_id)
        if query.search is not None:
            stmt = stmt.where(
                func.lower(EquipmentType.name).contains(query.search.lower(), autoescape=True)
            )

        total = self.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        rows = self.session.execute(
            stmt.order_by(MilitaryBase.name, EquipmentType.name)
            .offset(query.offset)
            .limit(query.limit)
        ).all()
        return Page(
            items=tuple(BalanceRecord.from_row(*row) for row in rows),
            total=total,
            page=query.page,
            limit=query.limit,
        )

    def get_purchase(self, purchase_id: UUID) -> PurchaseRecord:
        purchase = self.session.execute(
            select(Purchase).where(Purchase.id == purchase_id)
        ).scalar_one_or_none()
        if purchase is None:
            raise PurchaseNotFoundError(str(purchase_id))
        return PurchaseRecord.from_model(purchase)

    def get_expenditure(self, expenditure_id: UUID) -> ExpenditureRecord:
        expenditure = self.session.execute(
            select(Expenditure).where(Expenditure.id == expenditure_id)
        ).scalar_one_or_none()
        if expenditure is None:
            raise ExpenditureNotFoundError(str(expenditure_id))
        return ExpenditureRecord.from_model(expenditure)
