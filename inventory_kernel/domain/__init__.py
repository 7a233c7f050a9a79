"""
Pure domain layer.

Value objects, request structs and lifecycle rules with NO dependencies on
the ORM, the database or I/O (``SystemClock`` is the one time boundary).
"""

from inventory_kernel.domain.assignment import AssignmentStatus, can_return
from inventory_kernel.domain.authority import (
    Actor,
    BaseAuthority,
    Role,
    RoleBaseAuthority,
)
from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    AssignmentRecord,
    BalanceRecord,
    BaseRecord,
    DashboardFilters,
    EquipmentTypeRecord,
    ExpenditureRecord,
    MovementRecord,
    Page,
    PurchaseRecord,
    TransferRecord,
)
from inventory_kernel.domain.metrics import InventoryMetrics, ReconciliationResult
from inventory_kernel.domain.requests import (
    CreateAssignment,
    CreateTransfer,
    DateRange,
    ListQuery,
    MetricsQuery,
    RecordExpenditure,
    RecordPurchase,
    ReturnAssignment,
)
from inventory_kernel.domain.transfer import (
    TERMINAL_TRANSFER_STATUSES,
    TransferStatus,
    can_transition,
    moves_stock,
)

__all__ = [
    "Actor",
    "AssignmentRecord",
    "AssignmentStatus",
    "BalanceRecord",
    "BaseAuthority",
    "BaseRecord",
    "Clock",
    "CreateAssignment",
    "CreateTransfer",
    "DashboardFilters",
    "DateRange",
    "DeterministicClock",
    "EquipmentTypeRecord",
    "ExpenditureRecord",
    "InventoryMetrics",
    "ListQuery",
    "MetricsQuery",
    "MovementRecord",
    "Page",
    "PurchaseRecord",
    "ReconciliationResult",
    "RecordExpenditure",
    "RecordPurchase",
    "ReturnAssignment",
    "Role",
    "RoleBaseAuthority",
    "SystemClock",
    "TERMINAL_TRANSFER_STATUSES",
    "TransferRecord",
    "TransferStatus",
    "can_return",
    "can_transition",
    "moves_stock",
]
