"""
Dashboard metrics.

Fixture history for (Fort Bragg, M4):

    2024-01-05  purchase      +100
    2024-01-20  expenditure    -10
    2024-02-10  transfer out   -30   (to Camp Pendleton)
    2024-02-15  assignment      -5   (still outstanding)
    2024-03-01  purchase       +20
"""

from datetime import date
from uuid import uuid4

import pytest

from inventory_kernel.domain.authority import Actor, Role
from inventory_kernel.domain.metrics import InventoryMetrics
from inventory_kernel.domain.requests import (
    CreateAssignment,
    CreateTransfer,
    DateRange,
    MetricsQuery,
    RecordExpenditure,
)


@pytest.fixture
def history(ledger, admin, bases, equipment, stock):
    bragg, m4 = bases["bragg"], equipment["m4"]
    stock(bragg, m4, 100, on=date(2024, 1, 5))
    ledger.record_expenditure(
        RecordExpenditure(bragg, m4, 10, "Range accident", date(2024, 1, 20)), admin
    )
    transfer = ledger.create_transfer(
        CreateTransfer(bragg, bases["pendleton"], m4, 30, date(2024, 2, 8)), admin
    )
    ledger.approve_transfer(transfer.id, admin)
    ledger.complete_transfer(transfer.id, admin, completion_date=date(2024, 2, 10))
    ledger.create_assignment(
        CreateAssignment(bragg, m4, 5, "2nd Platoon", date(2024, 2, 15)), admin
    )
    stock(bragg, m4, 20, on=date(2024, 3, 1))


def _identities_hold(m: InventoryMetrics) -> bool:
    return (
        m.net_movement == m.purchases + m.transfers_in - m.transfers_out - m.expended
        and m.closing_balance == m.opening_balance + m.net_movement
    )


class TestMetricsForOneBase:
    def test_february_window(self, ledger, admin, bases, equipment, history):
        metrics = ledger.get_metrics(
            MetricsQuery(
                base_ids=[bases["bragg"]],
                equipment_type_id=equipment["m4"],
                date_range=DateRange(date(2024, 2, 1), date(2024, 2, 29)),
            ),
            admin,
        )

        assert metrics.opening_balance == 90
        assert metrics.transfers_out == 30
        assert metrics.assigned == 5
        assert metrics.purchases == 0
        assert metrics.net_movement == -30
        assert metrics.closing_balance == 60
        assert metrics.on_hand == 75
        assert metrics.assigned_outstanding == 5
        assert _identities_hold(metrics)

    def test_assignments_excluded_from_net(self, ledger, admin, bases, equipment, history):
        metrics = ledger.get_metrics(
            MetricsQuery(
                base_ids=[bases["bragg"]],
                date_range=DateRange(date(2024, 2, 12), date(2024, 2, 20)),
            ),
            admin,
        )
        assert metrics.assigned == 5
        assert metrics.net_movement == 0
        assert metrics.opening_balance == metrics.closing_balance == 60

    def test_opening_counts_outstanding_assignments(
        self, ledger, admin, bases, equipment, history
    ):
        metrics = ledger.get_metrics(
            MetricsQuery(
                base_ids=[bases["bragg"]],
                equipment_type_id=equipment["m4"],
                date_range=DateRange(date(2024, 3, 1), date(2024, 3, 31)),
            ),
            admin,
        )
        # 55 on the shelf before March plus 5 still with 2nd Platoon
        assert metrics.opening_balance == 60
        assert metrics.closing_balance == 80
        assert metrics.closing_balance == metrics.on_hand + metrics.assigned_outstanding

    def test_no_date_range(self, ledger, admin, bases, history):
        metrics = ledger.get_metrics(MetricsQuery(base_ids=[bases["bragg"]]), admin)

        assert metrics.opening_balance == 0
        assert metrics.purchases == 120
        assert metrics.expended == 10
        assert metrics.net_movement == 80
        assert metrics.closing_balance == 80
        assert _identities_hold(metrics)

    def test_closing_matches_holdings_when_window_reaches_today(
        self, ledger, admin, bases, history
    ):
        metrics = ledger.get_metrics(
            MetricsQuery(base_ids=[bases["bragg"]], date_range=DateRange(date(2024, 1, 1))),
            admin,
        )
        assert metrics.opening_balance == 0
        assert metrics.closing_balance == metrics.on_hand + metrics.assigned_outstanding

    def test_destination_sees_transfer_in(self, ledger, admin, bases, history):
        metrics = ledger.get_metrics(MetricsQuery(base_ids=[bases["pendleton"]]), admin)
        assert metrics.transfers_in == 30
        assert metrics.net_movement == 30
        assert metrics.on_hand == 30


class TestMetricsScope:
    def test_admin_defaults_to_every_base(self, ledger, admin, bases, history):
        metrics = ledger.get_metrics(MetricsQuery(), admin)

        assert set(metrics.base_ids) == set(bases.values())
        assert metrics.transfers_in == metrics.transfers_out == 30
        assert metrics.net_movement == 110

    def test_commander_scope_is_intersected(
        self, ledger, bases, history, commander_bragg
    ):
        metrics = ledger.get_metrics(
            MetricsQuery(base_ids=[bases["bragg"], bases["pendleton"]]), commander_bragg
        )
        assert metrics.base_ids == (bases["bragg"],)
        assert metrics.transfers_in == 0

    def test_commander_defaults_to_own_bases(self, ledger, bases, history, commander_pendleton):
        metrics = ledger.get_metrics(MetricsQuery(), commander_pendleton)
        assert metrics.base_ids == (bases["pendleton"],)
        assert metrics.on_hand == 30

    def test_no_visible_bases_is_empty(self, ledger, history):
        outsider = Actor(uuid4(), Role.LOGISTICS_OFFICER)
        assert ledger.get_metrics(MetricsQuery(), outsider) == InventoryMetrics.empty()

    def test_unknown_base_ignored(self, ledger, admin, history):
        assert ledger.get_metrics(MetricsQuery(base_ids=[uuid4()]), admin) == InventoryMetrics.empty()


class TestDashboardFilters:
    def test_admin_sees_everything(self, ledger, admin, bases, equipment):
        filters = ledger.get_dashboard_filters(admin)
        assert {b.id for b in filters.bases} == set(bases.values())
        assert {t.id for t in filters.equipment_types} == set(equipment.values())

    def test_commander_sees_own_bases(self, ledger, commander_bragg, bases, equipment):
        filters = ledger.get_dashboard_filters(commander_bragg)
        assert [b.name for b in filters.bases] == ["Fort Bragg"]
        assert len(filters.equipment_types) == len(equipment)
