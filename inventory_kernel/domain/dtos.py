"""
DTOs -- immutable results returned by the ledger.

Responsibility:
    Frozen dataclasses handed back to callers instead of ORM instances, so
    nothing outside the kernel can mutate a tracked row or trigger a lazy
    load after the session closed.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``from_model()`` class methods are
    boundary converters invoked only from services and selectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Generic, TypeVar
from uuid import UUID

from inventory_kernel.domain.assignment import AssignmentStatus
from inventory_kernel.domain.transfer import TERMINAL_TRANSFER_STATUSES, TransferStatus

if TYPE_CHECKING:
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

T = TypeVar("T")


@dataclass(frozen=True)
class BaseRecord:
    id: UUID
    name: str
    location: str
    commander_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None

    @classmethod
    def from_model(cls, model: MilitaryBase) -> BaseRecord:
        return cls(
            id=model.id,
            name=model.name,
            location=model.location,
            commander_name=model.commander_name,
            contact_email=model.contact_email,
            contact_phone=model.contact_phone,
        )


@dataclass(frozen=True)
class EquipmentTypeRecord:
    id: UUID
    name: str
    category: str | None = None

    @classmethod
    def from_model(cls, model: EquipmentType) -> EquipmentTypeRecord:
        return cls(id=model.id, name=model.name, category=model.category)


@dataclass(frozen=True)
class PurchaseRecord:
    id: UUID
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    supplier: str
    purchase_date: date
    created_by_id: UUID
    invoice_number: str | None = None
    notes: str | None = None

    @classmethod
    def from_model(cls, model: Purchase) -> PurchaseRecord:
        return cls(
            id=model.id,
            base_id=model.base_id,
            equipment_type_id=model.equipment_type_id,
            quantity=model.quantity,
            unit_price=Decimal(model.unit_price),
            total_amount=Decimal(model.total_amount),
            supplier=model.supplier,
            purchase_date=model.purchase_date,
            created_by_id=model.created_by_id,
            invoice_number=model.invoice_number,
            notes=model.notes,
        )


@dataclass(frozen=True)
class TransferRecord:
    id: UUID
    from_base_id: UUID
    to_base_id: UUID
    equipment_type_id: UUID
    quantity: int
    transfer_date: date
    status: TransferStatus
    created_by_id: UUID
    notes: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    rejected_by_id: UUID | None = None
    rejected_at: datetime | None = None
    cancelled_by_id: UUID | None = None
    cancelled_at: datetime | None = None
    completed_by_id: UUID | None = None
    completed_at: datetime | None = None
    completion_date: date | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRANSFER_STATUSES

    @classmethod
    def from_model(cls, model: TransferModel) -> TransferRecord:
        return cls(
            id=model.id,
            from_base_id=model.from_base_id,
            to_base_id=model.to_base_id,
            equipment_type_id=model.equipment_type_id,
            quantity=model.quantity,
            transfer_date=model.transfer_date,
            status=TransferStatus(model.status),
            created_by_id=model.created_by_id,
            notes=model.notes,
            approved_by_id=model.approved_by_id,
            approved_at=model.approved_at,
            rejected_by_id=model.rejected_by_id,
            rejected_at=model.rejected_at,
            cancelled_by_id=model.cancelled_by_id,
            cancelled_at=model.cancelled_at,
            completed_by_id=model.completed_by_id,
            completed_at=model.completed_at,
            completion_date=model.completion_date,
        )


@dataclass(frozen=True)
class AssignmentRecord:
    id: UUID
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    assigned_to: str
    assignment_date: date
    status: AssignmentStatus
    assigned_by_id: UUID
    expected_return_date: date | None = None
    actual_return_date: date | None = None
    returned_by_id: UUID | None = None
    notes: str | None = None

    @classmethod
    def from_model(cls, model: AssignmentModel) -> AssignmentRecord:
        return cls(
            id=model.id,
            base_id=model.base_id,
            equipment_type_id=model.equipment_type_id,
            quantity=model.quantity,
            assigned_to=model.assigned_to,
            assignment_date=model.assignment_date,
            status=AssignmentStatus(model.status),
            assigned_by_id=model.assigned_by_id,
            expected_return_date=model.expected_return_date,
            actual_return_date=model.actual_return_date,
            returned_by_id=model.returned_by_id,
            notes=model.notes,
        )


@dataclass(frozen=True)
class ExpenditureRecord:
    id: UUID
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    reason: str
    expenditure_date: date
    created_by_id: UUID
    approved_by_id: UUID | None = None
    notes: str | None = None

    @classmethod
    def from_model(cls, model: Expenditure) -> ExpenditureRecord:
        return cls(
            id=model.id,
            base_id=model.base_id,
            equipment_type_id=model.equipment_type_id,
            quantity=model.quantity,
            reason=model.reason,
            expenditure_date=model.expenditure_date,
            created_by_id=model.created_by_id,
            approved_by_id=model.approved_by_id,
            notes=model.notes,
        )


@dataclass(frozen=True)
class BalanceRecord:
    """One row of a base's inventory: a balance with its reference names."""

    base_id: UUID
    base_name: str
    equipment_type_id: UUID
    equipment_type_name: str
    quantity: int
    category: str | None = None

    @classmethod
    def from_row(
        cls, balance: Balance, base: MilitaryBase, equipment_type: EquipmentType
    ) -> BalanceRecord:
        return cls(
            base_id=balance.base_id,
            base_name=base.name,
            equipment_type_id=balance.equipment_type_id,
            equipment_type_name=equipment_type.name,
            quantity=balance.quantity,
            category=equipment_type.category,
        )


@dataclass(frozen=True)
class MovementRecord:
    seq: int
    movement_type: str
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    movement_date: date
    source_type: str
    source_id: UUID
    actor_id: UUID
    recorded_at: datetime

    @classmethod
    def from_model(cls, model: InventoryMovement) -> MovementRecord:
        return cls(
            seq=model.seq,
            movement_type=model.movement_type,
            base_id=model.base_id,
            equipment_type_id=model.equipment_type_id,
            quantity=model.quantity,
            movement_date=model.movement_date,
            source_type=model.source_type,
            source_id=model.source_id,
            actor_id=model.actor_id,
            recorded_at=model.recorded_at,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a filtered listing."""

    items: tuple[T, ...]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


@dataclass(frozen=True)
class DashboardFilters:
    bases: tuple[BaseRecord, ...] = field(default_factory=tuple)
    equipment_types: tuple[EquipmentTypeRecord, ...] = field(default_factory=tuple)
