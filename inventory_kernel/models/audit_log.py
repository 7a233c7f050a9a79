"""
Module: inventory_kernel.models.audit_log
Responsibility: ORM persistence for the audit trail written by
    DatabaseAuditSink.

Invariants enforced:
    - Append-only (db/immutability.py).
    - The ledger never reads this table; it is a write-only sink.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class AuditLogEntry(Base):
    """One committed ledger mutation, with before/after snapshots."""

    __tablename__ = "audit_log"

    __table_args__ = (
        Index("idx_audit_log_record", "table_name", "record_id"),
        Index("idx_audit_log_occurred", "occurred_at"),
    )

    # e.g. "create_purchase", "complete_transfer"
    action: Mapped[str] = mapped_column(String(50), nullable=False)

    table_name: Mapped[str] = mapped_column(String(50), nullable=False)

    record_id: Mapped[str] = mapped_column(String(36), nullable=False)

    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    actor_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
