"""
Tests for audit reporting.

Covers:
- one entry per committed mutation, with before/after snapshots
- failed operations are not reported
- a failing sink never affects the caller
- DatabaseAuditSink persists audit_log rows
"""

from datetime import date

import pytest
from sqlalchemy import select

from inventory_kernel.domain.requests import CreateTransfer, RecordExpenditure
from inventory_kernel.exceptions import InsufficientBalanceError
from inventory_kernel.models import AuditLogEntry
from inventory_kernel.services.audit_sink import (
    AuditSink,
    DatabaseAuditSink,
    InMemoryAuditSink,
    NullAuditSink,
)
from inventory_kernel.services.key_locks import KeyLockRegistry
from inventory_kernel.services.ledger import InventoryLedger


class _ExplodingSink:
    def record(self, action, entity, record_id, before, after, actor_id):
        raise RuntimeError("audit backend unavailable")


class TestInMemorySink:
    def test_purchase_reported(self, ledger, audit_sink, admin, bases, equipment, stock):
        audit_sink.entries.clear()
        purchase = stock(bases["bragg"], equipment["m4"], 12, unit_price="99.50")

        assert audit_sink.actions() == ["record_purchase"]
        entry = audit_sink.entries[0]
        assert entry.entity == "purchases"
        assert entry.record_id == purchase.id
        assert entry.actor_id == admin.actor_id
        assert entry.before is None
        assert entry.after["quantity"] == 12
        assert entry.after["total_amount"] == "1194.00"

    def test_transition_has_before_and_after(
        self, ledger, audit_sink, admin, bases, equipment, stock
    ):
        stock(bases["bragg"], equipment["m4"], 20)
        transfer = ledger.create_transfer(
            CreateTransfer(bases["bragg"], bases["hood"], equipment["m4"], 5, date(2024, 1, 3)),
            admin,
        )
        audit_sink.entries.clear()

        ledger.approve_transfer(transfer.id, admin)

        entry = audit_sink.entries[-1]
        assert entry.action == "approve_transfer"
        assert entry.before["status"] == "pending"
        assert entry.after["status"] == "approved"

    def test_failed_operation_not_reported(
        self, ledger, audit_sink, admin, bases, equipment
    ):
        audit_sink.entries.clear()
        with pytest.raises(InsufficientBalanceError):
            ledger.record_expenditure(
                RecordExpenditure(bases["bragg"], equipment["ammo"], 1, "Test", date(2024, 1, 1)),
                admin,
            )
        assert audit_sink.entries == []

    def test_sinks_satisfy_protocol(self):
        for sink in (NullAuditSink(), InMemoryAuditSink(), DatabaseAuditSink()):
            assert isinstance(sink, AuditSink)


class TestFailingSink:
    def test_operation_succeeds_and_failure_logged(
        self, session_factory, clock, settings, admin, captured_logs
    ):
        ledger = InventoryLedger(
            session_factory,
            audit_sink=_ExplodingSink(),
            clock=clock,
            settings=settings,
            lock_registry=KeyLockRegistry(),
        )

        record = ledger.create_base(admin, "Fort Drum", "New York, USA")

        assert ledger.get_base(record.id).name == "Fort Drum"
        failures = [r for r in captured_logs() if r["message"] == "audit_sink_failed"]
        assert len(failures) == 1
        assert failures[0]["entity"] == "bases"


class TestDatabaseSink:
    def test_rows_written(self, session_factory, clock, settings, admin, session):
        ledger = InventoryLedger(
            session_factory,
            audit_sink=DatabaseAuditSink(session_factory, clock),
            clock=clock,
            settings=settings,
            lock_registry=KeyLockRegistry(),
        )

        base = ledger.create_base(admin, "Fort Drum", "New York, USA")
        ledger.update_base(admin, base.id, location="Watertown, New York, USA")

        rows = session.execute(
            select(AuditLogEntry).order_by(AuditLogEntry.occurred_at, AuditLogEntry.action)
        ).scalars().all()
        assert sorted(r.action for r in rows) == ["create_base", "update_base"]
        update = next(r for r in rows if r.action == "update_base")
        assert update.table_name == "bases"
        assert update.record_id == str(base.id)
        assert update.old_values["location"] == "New York, USA"
        assert update.new_values["location"] == "Watertown, New York, USA"
        assert update.actor_id == admin.actor_id
