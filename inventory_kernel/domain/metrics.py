"""
Dashboard metrics DTOs (``inventory_kernel.domain.metrics``).

``InventoryMetrics`` is what the metrics selector returns for one slice
(base set x equipment type x date range).  All quantities are absolute
(non-negative) except ``net_movement``, which may be negative.

Identity kept by every instance the selector builds::

    net_movement    == purchases + transfers_in - transfers_out - expended
    closing_balance == opening_balance + net_movement

Assignments change custody, not ownership, so ``assigned`` is reported but
excluded from ``net_movement`` and from the opening/closing balances.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class InventoryMetrics:
    # Holdings before the window: on hand plus outstanding assigned,
    # not on-hand alone.  0 when the range has no start date.
    opening_balance: int
    closing_balance: int
    net_movement: int
    purchases: int
    transfers_in: int
    transfers_out: int
    assigned: int
    expended: int
    # Current state, independent of the date range
    on_hand: int
    assigned_outstanding: int
    base_ids: tuple[UUID, ...] = ()

    @classmethod
    def empty(cls) -> InventoryMetrics:
        return cls(
            opening_balance=0,
            closing_balance=0,
            net_movement=0,
            purchases=0,
            transfers_in=0,
            transfers_out=0,
            assigned=0,
            expended=0,
            on_hand=0,
            assigned_outstanding=0,
        )


@dataclass(frozen=True)
class ReconciliationResult:
    """Balance row vs. journal vs. the entity tables for one pair."""

    base_id: UUID
    equipment_type_id: UUID
    balance: int
    journal_total: int
    expected_from_records: int

    @property
    def is_consistent(self) -> bool:
        return self.balance == self.journal_total == self.expected_from_records
