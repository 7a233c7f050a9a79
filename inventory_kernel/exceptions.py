"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure a ledger operation can report is an expected business outcome
(bad input, not enough stock, wrong lifecycle state, missing authority).
Callers branch on the exception TYPE and read structured attributes; they
never parse message strings.

    try:
        ledger.complete_transfer(transfer_id, actor)
    except InsufficientBalanceError as e:
        api_response(code=e.code, available=e.available, requested=e.requested)
    except InvalidStateError as e:
        api_response(code=e.code, status=e.current_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError
    +-- InsufficientBalanceError
    +-- InvalidStateError
    |   +-- InvalidTransferTransitionError
    |   +-- AssignmentNotActiveError
    +-- UnauthorizedError
    +-- NotFoundError
    |   +-- BaseNotFoundError
    |   +-- EquipmentTypeNotFoundError
    |   +-- TransferNotFoundError
    |   +-- AssignmentNotFoundError
    |   +-- PurchaseNotFoundError
    |   +-- ExpenditureNotFoundError
    +-- ConcurrencyConflictError
    +-- DuplicateNameError
    +-- ReferencedEntityError
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                    | When Raised
------------------------|-------------------------------------------------
VALIDATION_ERROR        | Malformed or out-of-range request field
INSUFFICIENT_BALANCE    | Balance would go negative
INVALID_STATE           | Lifecycle transition from the wrong state
INVALID_TRANSITION      | Transfer transition not allowed from status
ASSIGNMENT_NOT_ACTIVE   | Returning an assignment that is not active
UNAUTHORIZED            | Actor lacks authority over the base/resource
NOT_FOUND               | Referenced entity does not exist
CONCURRENCY_CONFLICT    | Lock timeout / deadlock retries exhausted
DUPLICATE_NAME          | Base or equipment type name already taken
ENTITY_REFERENCED       | Deleting reference data still used by the ledger
IMMUTABILITY_VIOLATION  | Modifying an append-only or immutable record

===============================================================================
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


class ValidationError(InventoryKernelError):
    """A request field is malformed or out of range."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, value: object = None):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {message}")


class InsufficientBalanceError(InventoryKernelError):
    """The requested quantity exceeds the balance held at the base."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        base_id: str,
        equipment_type_id: str,
        available: int,
        requested: int,
    ):
        self.base_id = base_id
        self.equipment_type_id = equipment_type_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient balance at base {base_id} for equipment type "
            f"{equipment_type_id}: available {available}, requested {requested}"
        )


# State machine exceptions


class InvalidStateError(InventoryKernelError):
    """A lifecycle transition was attempted from the wrong state."""

    code: str = "INVALID_STATE"

    def __init__(self, entity_type: str, entity_id: str, current_status: str, action: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id}: status is {current_status}"
        )


class InvalidTransferTransitionError(InvalidStateError):
    """Transfer status does not allow the requested transition."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, transfer_id: str, current_status: str, target_status: str):
        self.target_status = target_status
        super().__init__("transfer", transfer_id, current_status, f"move to {target_status}")


class AssignmentNotActiveError(InvalidStateError):
    """Only active assignments can be returned."""

    code: str = "ASSIGNMENT_NOT_ACTIVE"

    def __init__(self, assignment_id: str, current_status: str):
        super().__init__("assignment", assignment_id, current_status, "return")


class UnauthorizedError(InventoryKernelError):
    """The actor lacks authority over the base or resource."""

    code: str = "UNAUTHORIZED"

    def __init__(self, actor_id: str, action: str, base_id: str | None = None):
        self.actor_id = actor_id
        self.action = action
        self.base_id = base_id
        target = f" on base {base_id}" if base_id else ""
        super().__init__(f"Actor {actor_id} is not allowed to {action}{target}")


# Lookup exceptions


class NotFoundError(InventoryKernelError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class BaseNotFoundError(NotFoundError):
    code: str = "BASE_NOT_FOUND"

    def __init__(self, base_id: str):
        super().__init__("base", base_id)


class EquipmentTypeNotFoundError(NotFoundError):
    code: str = "EQUIPMENT_TYPE_NOT_FOUND"

    def __init__(self, equipment_type_id: str):
        super().__init__("equipment_type", equipment_type_id)


class TransferNotFoundError(NotFoundError):
    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_id: str):
        super().__init__("transfer", transfer_id)


class AssignmentNotFoundError(NotFoundError):
    code: str = "ASSIGNMENT_NOT_FOUND"

    def __init__(self, assignment_id: str):
        super().__init__("assignment", assignment_id)


class PurchaseNotFoundError(NotFoundError):
    code: str = "PURCHASE_NOT_FOUND"

    def __init__(self, purchase_id: str):
        super().__init__("purchase", purchase_id)


class ExpenditureNotFoundError(NotFoundError):
    code: str = "EXPENDITURE_NOT_FOUND"

    def __init__(self, expenditure_id: str):
        super().__init__("expenditure", expenditure_id)


class ConcurrencyConflictError(InventoryKernelError):
    """Transient lock/deadlock failures persisted after bounded retries."""

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, operation: str, attempts: int, reason: str = ""):
        self.operation = operation
        self.attempts = attempts
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Operation {operation} failed after {attempts} attempt(s){detail}"
        )


# Reference data exceptions


class DuplicateNameError(InventoryKernelError):
    """A base or equipment type with this name already exists."""

    code: str = "DUPLICATE_NAME"

    def __init__(self, entity_type: str, name: str):
        self.entity_type = entity_type
        self.name = name
        super().__init__(f"A {entity_type} named {name!r} already exists")


class ReferencedEntityError(InventoryKernelError):
    """Reference data cannot be deleted while the ledger refers to it."""

    code: str = "ENTITY_REFERENCED"

    def __init__(self, entity_type: str, entity_id: str, reference_count: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reference_count = reference_count
        super().__init__(
            f"Cannot delete {entity_type} {entity_id}: "
            f"referenced by {reference_count} ledger record(s)"
        )


class ImmutabilityViolationError(InventoryKernelError):
    """Attempted to modify an append-only or immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")
