"""
Inventory Kernel - equipment ledger for multi-base inventory

A transactional inventory ledger with:
- Per-base, per-equipment-type balances that never go negative
- Append-only movement journal with monotonic sequencing
- Transfer and assignment lifecycles with exactly-once stock effects
- Journal-replay dashboard metrics
"""

__version__ = "0.1.0"
