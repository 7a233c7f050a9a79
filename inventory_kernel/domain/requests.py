"""
Ledger request structs (``inventory_kernel.domain.requests``).

Responsibility
--------------
One frozen dataclass per ledger operation.  Each validates its own fields at
construction time, so anything that reaches a service is already well-formed.
Field-level problems raise ``ValidationError`` naming the offending field.

Balance-dependent checks (enough stock?) and existence checks (does the base
exist?) are NOT done here -- they need the database and belong to services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from uuid import UUID

from inventory_kernel.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 500

# Column limits: quantities are BigInteger, money is Numeric(18, 4)
MAX_QUANTITY = 2**63 - 1
MONEY_PLACES = 4
MAX_MONEY = Decimal(10) ** (18 - MONEY_PLACES) - Decimal(1).scaleb(-MONEY_PLACES)


def _require_uuid(name: str, value: object) -> None:
    if not isinstance(value, UUID):
        raise ValidationError(name, "must be a UUID", value)


def _require_positive_int(name: str, value: object) -> None:
    # bool is an int subclass; True must not pass as a quantity of 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(name, "must be an integer", value)
    if value <= 0:
        raise ValidationError(name, "must be greater than zero", value)
    if value > MAX_QUANTITY:
        raise ValidationError(name, f"must be at most {MAX_QUANTITY}", value)


def _require_text(name: str, value: object) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, "is required", value)


def _require_date(name: str, value: object, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not isinstance(value, date):
        raise ValidationError(name, "must be a date", value)


def _to_decimal(name: str, value: object) -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        # floats carry binary rounding error into money amounts
        raise ValidationError(name, "must be a Decimal, int or numeric string", value)
    try:
        return Decimal(str(value)) if not isinstance(value, Decimal) else value
    except InvalidOperation:
        raise ValidationError(name, "is not a number", value)


@dataclass(frozen=True)
class RecordPurchase:
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    unit_price: Decimal
    supplier: str
    purchase_date: date
    invoice_number: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        _require_uuid("base_id", self.base_id)
        _require_uuid("equipment_type_id", self.equipment_type_id)
        _require_positive_int("quantity", self.quantity)
        price = _to_decimal("unit_price", self.unit_price)
        if not price.is_finite() or price <= 0:
            raise ValidationError("unit_price", "must be greater than zero", self.unit_price)
        if price * self.quantity > MAX_MONEY:
            raise ValidationError(
                "unit_price", f"total must not exceed {MAX_MONEY}", self.unit_price
            )
        # trailing zeros beyond the scale are fine ("12.50000")
        if price != price.quantize(Decimal(1).scaleb(-MONEY_PLACES)):
            raise ValidationError(
                "unit_price", f"must have at most {MONEY_PLACES} decimal places", self.unit_price
            )
        object.__setattr__(self, "unit_price", price)
        _require_text("supplier", self.supplier)
        _require_date("purchase_date", self.purchase_date)

    @property
    def total_amount(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CreateTransfer:
    from_base_id: UUID
    to_base_id: UUID
    equipment_type_id: UUID
    quantity: int
    transfer_date: date
    notes: str | None = None

    def __post_init__(self) -> None:
        _require_uuid("from_base_id", self.from_base_id)
        _require_uuid("to_base_id", self.to_base_id)
        _require_uuid("equipment_type_id", self.equipment_type_id)
        if self.from_base_id == self.to_base_id:
            raise ValidationError(
                "to_base_id", "source and destination bases must differ", self.to_base_id
            )
        _require_positive_int("quantity", self.quantity)
        _require_date("transfer_date", self.transfer_date)


@dataclass(frozen=True)
class CreateAssignment:
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    assigned_to: str
    assignment_date: date
    expected_return_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        _require_uuid("base_id", self.base_id)
        _require_uuid("equipment_type_id", self.equipment_type_id)
        _require_positive_int("quantity", self.quantity)
        _require_text("assigned_to", self.assigned_to)
        _require_date("assignment_date", self.assignment_date)
        _require_date("expected_return_date", self.expected_return_date, optional=True)
        if (
            self.expected_return_date is not None
            and self.expected_return_date < self.assignment_date
        ):
            raise ValidationError(
                "expected_return_date",
                "cannot be before the assignment date",
                self.expected_return_date,
            )


@dataclass(frozen=True)
class ReturnAssignment:
    assignment_id: UUID
    actual_return_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        _require_uuid("assignment_id", self.assignment_id)
        _require_date("actual_return_date", self.actual_return_date, optional=True)


@dataclass(frozen=True)
class RecordExpenditure:
    base_id: UUID
    equipment_type_id: UUID
    quantity: int
    reason: str
    expenditure_date: date
    notes: str | None = None

    def __post_init__(self) -> None:
        _require_uuid("base_id", self.base_id)
        _require_uuid("equipment_type_id", self.equipment_type_id)
        _require_positive_int("quantity", self.quantity)
        _require_text("reason", self.reason)
        _require_date("expenditure_date", self.expenditure_date)


@dataclass(frozen=True)
class DateRange:
    """Inclusive business-date window; either end may be open."""

    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self) -> None:
        _require_date("start_date", self.start_date, optional=True)
        _require_date("end_date", self.end_date, optional=True)
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise ValidationError("end_date", "must not be before start_date", self.end_date)


@dataclass(frozen=True)
class MetricsQuery:
    """Dashboard slice.  ``base_ids=None`` means every base the actor may see."""

    base_ids: frozenset[UUID] | None = None
    equipment_type_id: UUID | None = None
    date_range: DateRange = field(default_factory=DateRange)

    def __post_init__(self) -> None:
        if self.base_ids is not None:
            object.__setattr__(self, "base_ids", frozenset(self.base_ids))
            for base_id in self.base_ids:
                _require_uuid("base_ids", base_id)
        if self.equipment_type_id is not None:
            _require_uuid("equipment_type_id", self.equipment_type_id)


@dataclass(frozen=True)
class ListQuery:
    """Filters and paging shared by the record listings."""

    base_id: UUID | None = None
    equipment_type_id: UUID | None = None
    status: str | None = None
    date_range: DateRange = field(default_factory=DateRange)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    # equipment type name fragment, inventory listing only
    search: str | None = None

    def __post_init__(self) -> None:
        if self.base_id is not None:
            _require_uuid("base_id", self.base_id)
        if self.equipment_type_id is not None:
            _require_uuid("equipment_type_id", self.equipment_type_id)
        _require_positive_int("page", self.page)
        _require_positive_int("limit", self.limit)
        if self.limit > MAX_PAGE_SIZE:
            raise ValidationError("limit", f"must be at most {MAX_PAGE_SIZE}", self.limit)
        if self.search is not None:
            if not isinstance(self.search, str):
                raise ValidationError("search", "must be a string", self.search)
            object.__setattr__(self, "search", self.search.strip() or None)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
