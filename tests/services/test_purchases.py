"""
Tests for recording purchases through the ledger.

Covers:
- Balance increment and total_amount (quantity x unit_price)
- Journal row written with the purchase date
- Unknown base / equipment type
- Optional invoice number and notes
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.requests import ListQuery, RecordPurchase
from inventory_kernel.exceptions import (
    BaseNotFoundError,
    EquipmentTypeNotFoundError,
    ValidationError,
)


class TestRecordPurchase:
    def test_purchase_into_empty_balance(self, ledger, admin, bases, equipment):
        """Balance 0 -> purchase 100 @ 50 -> balance 100, total 5000."""
        assert ledger.get_balance(bases["bragg"], equipment["m4"]) == 0

        record = ledger.record_purchase(
            RecordPurchase(
                base_id=bases["bragg"],
                equipment_type_id=equipment["m4"],
                quantity=100,
                unit_price=Decimal("50"),
                supplier="Acme",
                purchase_date=date(2024, 1, 1),
            ),
            admin,
        )

        assert ledger.get_balance(bases["bragg"], equipment["m4"]) == 100
        assert record.total_amount == Decimal("5000")
        assert record.quantity == 100
        assert record.created_by_id == admin.actor_id

    def test_purchases_accumulate(self, ledger, bases, equipment, stock):
        stock(bases["bragg"], equipment["ammo"], 1000)
        stock(bases["bragg"], equipment["ammo"], 500)
        assert ledger.get_balance(bases["bragg"], equipment["ammo"]) == 1500

    def test_journal_row_written(self, ledger, admin, bases, equipment, stock):
        purchase = stock(bases["bragg"], equipment["m4"], 40, on=date(2024, 2, 14))

        movements = ledger.list_movements(bases["bragg"], admin)
        assert len(movements) == 1
        movement = movements[0]
        assert movement.movement_type == "purchase"
        assert movement.quantity == 40
        assert movement.movement_date == date(2024, 2, 14)
        assert movement.source_type == "purchase"
        assert movement.source_id == purchase.id

    def test_invoice_and_notes_kept(self, ledger, officer_bragg, bases, equipment):
        record = ledger.record_purchase(
            RecordPurchase(
                base_id=bases["bragg"],
                equipment_type_id=equipment["hmmwv"],
                quantity=2,
                unit_price="220000.00",
                supplier="AM General",
                purchase_date=date(2024, 1, 5),
                invoice_number="INV-2024-0042",
                notes="Replacement vehicles",
            ),
            officer_bragg,
        )
        assert record.invoice_number == "INV-2024-0042"
        assert record.notes == "Replacement vehicles"
        assert record.total_amount == Decimal("440000.00")

    def test_unknown_base(self, ledger, admin, equipment):
        with pytest.raises(BaseNotFoundError):
            ledger.record_purchase(
                RecordPurchase(uuid4(), equipment["m4"], 1, "1", "Acme", date(2024, 1, 1)),
                admin,
            )

    def test_unknown_equipment_type_leaves_no_trace(self, ledger, admin, bases):
        with pytest.raises(EquipmentTypeNotFoundError):
            ledger.record_purchase(
                RecordPurchase(bases["bragg"], uuid4(), 1, "1", "Acme", date(2024, 1, 1)),
                admin,
            )
        assert ledger.list_movements(bases["bragg"], admin) == []


class TestPurchaseAmounts:
    def test_four_place_price_matches_stored_row(self, ledger, admin, bases, equipment):
        record = ledger.record_purchase(
            RecordPurchase(
                bases["bragg"], equipment["ammo"], 3, "0.0001", "Lake City", date(2024, 1, 2)
            ),
            admin,
        )
        stored = ledger.list_purchases(ListQuery(base_id=bases["bragg"]), admin).items[0]
        assert stored.unit_price == record.unit_price == Decimal("0.0001")
        assert stored.total_amount == record.total_amount == Decimal("0.0003")

    def test_price_finer_than_storage_rejected(self, ledger, admin, bases, equipment):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_purchase(
                RecordPurchase(
                    bases["bragg"], equipment["ammo"], 3, Decimal("0.00001"), "Lake City",
                    date(2024, 1, 2),
                ),
                admin,
            )
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert ledger.get_balance(bases["bragg"], equipment["ammo"]) == 0

    def test_oversized_quantity_is_a_kernel_error(self, ledger, admin, bases, equipment):
        with pytest.raises(ValidationError) as exc_info:
            ledger.record_purchase(
                RecordPurchase(
                    bases["bragg"], equipment["ammo"], 10**20, "1", "Lake City", date(2024, 1, 2)
                ),
                admin,
            )
        assert exc_info.value.field == "quantity"
