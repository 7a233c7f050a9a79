"""ORM models for the inventory kernel."""

from inventory_kernel.models.assignment import AssignmentModel
from inventory_kernel.models.audit_log import AuditLogEntry
from inventory_kernel.models.balance import Balance
from inventory_kernel.models.expenditure import Expenditure
from inventory_kernel.models.movement import (
    INBOUND_MOVEMENTS,
    OWNERSHIP_MOVEMENTS,
    InventoryMovement,
    MovementType,
)
from inventory_kernel.models.purchase import Purchase
from inventory_kernel.models.reference import EquipmentType, MilitaryBase
from inventory_kernel.models.sequence import SequenceCounter
from inventory_kernel.models.transfer import TransferModel

__all__ = [
    "AssignmentModel",
    "AuditLogEntry",
    "Balance",
    "EquipmentType",
    "Expenditure",
    "INBOUND_MOVEMENTS",
    "InventoryMovement",
    "MilitaryBase",
    "MovementType",
    "OWNERSHIP_MOVEMENTS",
    "Purchase",
    "SequenceCounter",
    "TransferModel",
]
