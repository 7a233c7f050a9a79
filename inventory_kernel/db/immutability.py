"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The movement journal and the records it points at are the ledger's evidence.
Once written they must not change: a corrected quantity is a new movement,
never an edited one.  Services never issue these updates; the listeners
below make sure nothing else can either.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database:

    session.flush()
         |
         v
    [before_update event] --> _check_*() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity             | When Immutable                      | Rule
-------------------|-------------------------------------|-------------------------
InventoryMovement  | ALWAYS                              | append-only journal
Purchase           | ALWAYS                              | no edit, no delete
Expenditure        | ALWAYS                              | terminal, no reversal
AuditLogEntry      | ALWAYS                              | write-only sink
EquipmentType      | name/category, ALWAYS               | reference data
Balance            | never deleted                       | projection row
TransferModel      | once status is terminal             | completed/cancelled/rejected
AssignmentModel    | once status is returned             | returned is terminal

===============================================================================
"""

from sqlalchemy import event, inspect

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_TERMINAL_TRANSFER_STATUSES = frozenset({"completed", "cancelled", "rejected"})
_TERMINAL_ASSIGNMENT_STATUSES = frozenset({"returned"})

# Audit metadata columns that may change on otherwise-immutable rows
_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


def _changed_business_fields(target) -> list[str]:
    state = inspect(target)
    changed = []
    for attr in state.mapper.column_attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if state.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


def _previous_value(target, key: str):
    history = inspect(target).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    return getattr(target, key)


def _reject_update(entity_type: str):
    def _check(mapper, connection, target):
        changed = _changed_business_fields(target)
        if changed:
            logger.error(
                "immutability_violation",
                extra={"entity_type": entity_type, "fields": changed},
            )
            raise ImmutabilityViolationError(
                entity_type, str(target.id), f"fields {changed} are immutable"
            )

    _check.__name__ = f"_check_{entity_type}_immutability"
    return _check


def _reject_delete(entity_type: str, reason: str):
    def _check(mapper, connection, target):
        logger.error(
            "immutability_violation",
            extra={"entity_type": entity_type, "operation": "delete"},
        )
        raise ImmutabilityViolationError(entity_type, str(target.id), reason)

    _check.__name__ = f"_check_{entity_type}_delete"
    return _check


def _check_transfer_terminal(mapper, connection, target):
    previous = _previous_value(target, "status")
    if previous in _TERMINAL_TRANSFER_STATUSES and _changed_business_fields(target):
        raise ImmutabilityViolationError(
            "transfer", str(target.id), f"transfer is {previous}"
        )


def _check_assignment_terminal(mapper, connection, target):
    previous = _previous_value(target, "status")
    if previous in _TERMINAL_ASSIGNMENT_STATUSES and _changed_business_fields(target):
        raise ImmutabilityViolationError(
            "assignment", str(target.id), f"assignment is {previous}"
        )


_check_movement_immutability = _reject_update("inventory_movement")
_check_movement_delete = _reject_delete("inventory_movement", "journal is append-only")
_check_purchase_immutability = _reject_update("purchase")
_check_purchase_delete = _reject_delete("purchase", "purchases cannot be deleted")
_check_expenditure_immutability = _reject_update("expenditure")
_check_expenditure_delete = _reject_delete("expenditure", "expenditures are terminal")
_check_audit_immutability = _reject_update("audit_log")
_check_audit_delete = _reject_delete("audit_log", "audit trail is append-only")
_check_equipment_type_immutability = _reject_update("equipment_type")
_check_balance_delete = _reject_delete("balance", "balance rows are never deleted")


def _listener_table():
    from inventory_kernel.models import (
        AssignmentModel,
        AuditLogEntry,
        Balance,
        EquipmentType,
        Expenditure,
        InventoryMovement,
        Purchase,
        TransferModel,
    )

    return [
        (InventoryMovement, "before_update", _check_movement_immutability),
        (InventoryMovement, "before_delete", _check_movement_delete),
        (Purchase, "before_update", _check_purchase_immutability),
        (Purchase, "before_delete", _check_purchase_delete),
        (Expenditure, "before_update", _check_expenditure_immutability),
        (Expenditure, "before_delete", _check_expenditure_delete),
        (AuditLogEntry, "before_update", _check_audit_immutability),
        (AuditLogEntry, "before_delete", _check_audit_delete),
        (EquipmentType, "before_update", _check_equipment_type_immutability),
        (Balance, "before_delete", _check_balance_delete),
        (TransferModel, "before_update", _check_transfer_terminal),
        (AssignmentModel, "before_update", _check_assignment_terminal),
    ]


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are skipped.
    """
    for target, event_name, fn in _listener_table():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners() -> None:
    """Remove immutability enforcement event listeners."""
    for target, event_name, fn in _listener_table():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
