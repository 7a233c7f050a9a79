"""Structured JSON logging (inventory_kernel/logging_config.py) and what the ledger emits."""

import json
import logging
from datetime import date
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.domain.requests import (
    CreateAssignment,
    CreateTransfer,
    RecordExpenditure,
    ReturnAssignment,
)
from inventory_kernel.exceptions import InsufficientBalanceError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


def _stream_logging(level=logging.INFO) -> StringIO:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    reset_logging()
    configure_logging(handler=handler, level=level)
    return stream


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


@pytest.fixture
def isolated_logging():
    """Fresh logger tree per test; restored to the suite default afterwards."""
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.mark.usefixtures("isolated_logging")
class TestStructuredFormatter:
    def test_one_json_object_per_line(self):
        stream = _stream_logging()
        logger = get_logger("test")
        logger.info("balance_adjusted", extra={"quantity": 30, "delta": -5})
        logger.debug("not_emitted")

        [record] = _records(stream)
        assert record["level"] == "INFO"
        assert record["logger"] == "inventory_kernel.test"
        assert record["message"] == "balance_adjusted"
        assert record["quantity"] == 30
        assert record["delta"] == -5
        assert "ts" in record

    def test_uuid_and_date_serialized(self):
        stream = _stream_logging()
        base_id = uuid4()
        get_logger("test").info(
            "movement_recorded", extra={"base_id": base_id, "movement_date": date(2024, 5, 1)}
        )
        [record] = _records(stream)
        assert record["base_id"] == str(base_id)
        assert record["movement_date"] == "2024-05-01"

    def test_kernel_exception_fields_flattened(self):
        stream = _stream_logging()
        try:
            raise InsufficientBalanceError("base-1", "type-9", 5, 6)
        except InsufficientBalanceError:
            get_logger("test").error("expenditure_failed", exc_info=True)

        [record] = _records(stream)
        assert record["exc_type"] == "InsufficientBalanceError"
        assert record["exc_code"] == "INSUFFICIENT_BALANCE"
        assert record["exc_available"] == 5
        assert record["exc_requested"] == 6
        assert "traceback" in record

    def test_context_merged(self):
        stream = _stream_logging()
        with LogContext.bind(correlation_id="c-1", operation="complete_transfer"):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = _records(stream)
        assert inside["correlation_id"] == "c-1"
        assert inside["operation"] == "complete_transfer"
        assert "correlation_id" not in outside


@pytest.mark.usefixtures("isolated_logging")
class TestConfiguration:
    def test_configure_is_idempotent(self):
        _stream_logging()
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert len(logging.getLogger("inventory_kernel").handlers) == 1

    def test_child_loggers_namespaced(self):
        assert get_logger("services.ledger").name == "inventory_kernel.services.ledger"

    def test_bind_restores_previous_value(self):
        LogContext.set(actor_id="outer")
        with LogContext.bind(actor_id="inner"):
            assert LogContext.get_all()["actor_id"] == "inner"
        assert LogContext.get_all()["actor_id"] == "outer"


class TestLedgerLogging:
    def test_committed_operation_carries_correlation(
        self, ledger, admin, bases, equipment, stock, captured_logs
    ):
        stock(bases["bragg"], equipment["m4"], 10)

        records = captured_logs()
        committed = [r for r in records if r["message"] == "operation_committed"]
        assert committed[-1]["operation"] == "record_purchase"
        assert committed[-1]["entity"] == "purchases"
        assert committed[-1]["actor_id"] == str(admin.actor_id)

        correlation = committed[-1]["correlation_id"]
        movement = next(r for r in records if r["message"] == "movement_recorded")
        assert movement["correlation_id"] == correlation
        assert movement["movement_type"] == "purchase"

    def test_business_failure_logged_with_code(
        self, ledger, admin, bases, equipment, captured_logs
    ):
        with pytest.raises(InsufficientBalanceError):
            ledger.record_expenditure(
                RecordExpenditure(bases["bragg"], equipment["ammo"], 1, "Drill", date(2024, 1, 2)),
                admin,
            )
        failed = [r for r in captured_logs() if r["message"] == "operation_failed"]
        assert failed[-1]["error_code"] == "INSUFFICIENT_BALANCE"
        assert failed[-1]["level"] == "WARNING"

    def test_transition_logs_carry_entity_id(
        self, ledger, admin, bases, equipment, stock, captured_logs
    ):
        stock(bases["bragg"], equipment["m4"], 10)
        transfer = ledger.create_transfer(
            CreateTransfer(bases["bragg"], bases["hood"], equipment["m4"], 4, date(2024, 1, 2)),
            admin,
        )
        ledger.approve_transfer(transfer.id, admin)

        records = captured_logs()
        approved = next(r for r in records if r["message"] == "transfer_approved")
        assert approved["entity_id"] == str(transfer.id)
        purchase = next(r for r in records if r.get("operation") == "record_purchase")
        assert "entity_id" not in purchase

    def test_return_logs_carry_assignment_id(
        self, ledger, admin, bases, equipment, stock, captured_logs
    ):
        stock(bases["bragg"], equipment["m4"], 10)
        assignment = ledger.create_assignment(
            CreateAssignment(bases["bragg"], equipment["m4"], 2, "SGT Ruiz", date(2024, 1, 3)),
            admin,
        )
        ledger.return_assignment(ReturnAssignment(assignment.id), admin)

        committed = [
            r for r in captured_logs()
            if r["message"] == "operation_committed" and r.get("operation") == "return_assignment"
        ]
        assert committed[-1]["entity_id"] == str(assignment.id)
