"""
Transfer lifecycle (``inventory_kernel.domain.transfer``).

Pure state machine for cross-base transfers.  Stock moves only on the
``approved -> completed`` edge; every other edge is a status change with no
balance effect.

    pending --approve--> approved --complete--> completed
       |                    |
       +--reject--> rejected
       |                    |
       +--cancel--> cancelled <--cancel--+
"""

from __future__ import annotations

from enum import Enum


class TransferStatus(str, Enum):
    """Transfer lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


TRANSFER_TRANSITIONS: dict[TransferStatus, frozenset[TransferStatus]] = {
    TransferStatus.PENDING: frozenset({
        TransferStatus.APPROVED,
        TransferStatus.REJECTED,
        TransferStatus.CANCELLED,
    }),
    TransferStatus.APPROVED: frozenset({
        TransferStatus.COMPLETED,
        TransferStatus.CANCELLED,
    }),
    TransferStatus.COMPLETED: frozenset(),
    TransferStatus.CANCELLED: frozenset(),
    TransferStatus.REJECTED: frozenset(),
}

TERMINAL_TRANSFER_STATUSES: frozenset[TransferStatus] = frozenset({
    TransferStatus.COMPLETED,
    TransferStatus.CANCELLED,
    TransferStatus.REJECTED,
})


def can_transition(current: TransferStatus | str, target: TransferStatus | str) -> bool:
    """True if ``current -> target`` is an edge of the lifecycle."""
    return TransferStatus(target) in TRANSFER_TRANSITIONS[TransferStatus(current)]


def moves_stock(current: TransferStatus | str, target: TransferStatus | str) -> bool:
    """Only completion applies the balance effect."""
    return (
        TransferStatus(current) == TransferStatus.APPROVED
        and TransferStatus(target) == TransferStatus.COMPLETED
    )
