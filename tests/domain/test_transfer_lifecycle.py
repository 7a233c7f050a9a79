"""
Tests for the transfer and assignment lifecycles
(``inventory_kernel.domain.transfer``, ``inventory_kernel.domain.assignment``).

Pure state-machine checks, no database.
"""

import pytest

from inventory_kernel.domain.assignment import AssignmentStatus, can_return
from inventory_kernel.domain.transfer import (
    TERMINAL_TRANSFER_STATUSES,
    TRANSFER_TRANSITIONS,
    TransferStatus,
    can_transition,
    moves_stock,
)


class TestTransferTransitions:
    def test_every_status_has_an_entry(self):
        assert set(TRANSFER_TRANSITIONS) == set(TransferStatus)

    def test_terminal_states_have_no_outgoing_edges(self):
        for status in TERMINAL_TRANSFER_STATUSES:
            assert TRANSFER_TRANSITIONS[status] == frozenset()

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "approved"),
            ("pending", "rejected"),
            ("pending", "cancelled"),
            ("approved", "completed"),
            ("approved", "cancelled"),
        ],
    )
    def test_allowed_edges(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "completed"),
            ("approved", "approved"),
            ("approved", "rejected"),
            ("completed", "cancelled"),
            ("cancelled", "approved"),
            ("rejected", "approved"),
        ],
    )
    def test_forbidden_edges(self, current, target):
        assert not can_transition(current, target)

    def test_accepts_enum_members(self):
        assert can_transition(TransferStatus.PENDING, TransferStatus.APPROVED)

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            can_transition("shipped", "completed")


class TestMovesStock:
    def test_only_completion_moves_stock(self):
        moving = [
            (current, target)
            for current in TransferStatus
            for target in TransferStatus
            if moves_stock(current, target)
        ]
        assert moving == [(TransferStatus.APPROVED, TransferStatus.COMPLETED)]


class TestAssignmentLifecycle:
    def test_active_can_be_returned(self):
        assert can_return("active")

    def test_returned_is_terminal(self):
        assert not can_return(AssignmentStatus.RETURNED)
