"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.assignment_service import AssignmentService
from inventory_kernel.services.audit_sink import (
    AuditSink,
    DatabaseAuditSink,
    InMemoryAuditSink,
    NullAuditSink,
)
from inventory_kernel.services.balance_store import BalanceStore
from inventory_kernel.services.expenditure_service import ExpenditureService
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.key_locks import KeyLockRegistry
from inventory_kernel.services.ledger import InventoryLedger
from inventory_kernel.services.purchase_service import PurchaseService
from inventory_kernel.services.reference_data_service import ReferenceDataService
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.transfer_service import TransferService

__all__ = [
    "AssignmentService",
    "AuditSink",
    "BalanceStore",
    "DatabaseAuditSink",
    "ExpenditureService",
    "InMemoryAuditSink",
    "InventoryLedger",
    "KeyLockRegistry",
    "MovementJournal",
    "NullAuditSink",
    "PurchaseService",
    "ReferenceDataService",
    "SequenceService",
    "TransferService",
]
