"""
Tests for BalanceStore.adjust bounds.

The balance column is a signed 64-bit integer; adjust() refuses to go
below zero or past the column range before anything is flushed.
"""

import pytest

from inventory_kernel.domain.requests import MAX_QUANTITY
from inventory_kernel.exceptions import InsufficientBalanceError, ValidationError
from inventory_kernel.services.balance_store import BalanceStore


class TestAdjustBounds:
    def test_adjust_up_to_column_maximum(self, session, bases, equipment):
        store = BalanceStore(session)
        assert store.adjust(bases["bragg"], equipment["ammo"], MAX_QUANTITY) == MAX_QUANTITY

    def test_increment_past_column_maximum_rejected(self, session, bases, equipment):
        store = BalanceStore(session)
        store.adjust(bases["bragg"], equipment["ammo"], MAX_QUANTITY - 5)

        with pytest.raises(ValidationError) as exc_info:
            store.adjust(bases["bragg"], equipment["ammo"], 10)

        assert exc_info.value.field == "quantity"
        assert store.get_balance(bases["bragg"], equipment["ammo"]) == MAX_QUANTITY - 5

    def test_decrement_below_zero_rejected(self, session, bases, equipment):
        store = BalanceStore(session)
        store.adjust(bases["bragg"], equipment["m4"], 3)

        with pytest.raises(InsufficientBalanceError):
            store.adjust(bases["bragg"], equipment["m4"], -4)

        assert store.get_balance(bases["bragg"], equipment["m4"]) == 3
