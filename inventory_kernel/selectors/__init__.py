"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.metrics_selector import MetricsSelector
from inventory_kernel.selectors.reconciliation_selector import ReconciliationSelector
from inventory_kernel.selectors.record_selector import RecordSelector

__all__ = [
    "MetricsSelector",
    "ReconciliationSelector",
    "RecordSelector",
]
