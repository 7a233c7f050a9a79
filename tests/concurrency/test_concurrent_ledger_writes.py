"""
Concurrent writers against one balance.

Runs on the default SQLite database (in-process key locks + BEGIN IMMEDIATE)
and on PostgreSQL when DATABASE_URL points there (row locks).

    pytest tests/concurrency -m slow_locks
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from threading import Barrier

import pytest

from inventory_kernel.domain.requests import CreateTransfer, RecordExpenditure
from inventory_kernel.domain.transfer import TransferStatus
from inventory_kernel.exceptions import InsufficientBalanceError

pytestmark = pytest.mark.slow_locks


def _race(num_threads, fn, timeout=None):
    """
    Run ``fn(i)`` on ``num_threads`` threads released together.

    With ``timeout`` every result must arrive within that many seconds.
    """
    barrier = Barrier(num_threads, timeout=30)

    def run(i):
        barrier.wait()
        try:
            return ("ok", fn(i))
        except InsufficientBalanceError as exc:
            return ("insufficient", exc)

    with ThreadPoolExecutor(max_workers=num_threads) as pool:
        return list(pool.map(run, range(num_threads), timeout=timeout))


class TestConcurrentTransferCompletion:
    def test_only_one_completion_fits(self, ledger, admin, bases, equipment, stock):
        """Eight approved transfers each need the full 30; exactly one completes."""
        bragg, pendleton, m4 = bases["bragg"], bases["pendleton"], equipment["m4"]
        stock(bragg, m4, 30)

        transfer_ids = []
        for _ in range(8):
            t = ledger.create_transfer(CreateTransfer(bragg, pendleton, m4, 30, date(2024, 1, 2)), admin)
            ledger.approve_transfer(t.id, admin)
            transfer_ids.append(t.id)

        results = _race(len(transfer_ids), lambda i: ledger.complete_transfer(transfer_ids[i], admin))

        outcomes = [r[0] for r in results]
        assert outcomes.count("ok") == 1
        assert outcomes.count("insufficient") == 7
        assert ledger.get_balance(bragg, m4) == 0
        assert ledger.get_balance(pendleton, m4) == 30

        statuses = [ledger.get_transfer(tid).status for tid in transfer_ids]
        assert statuses.count(TransferStatus.COMPLETED) == 1
        assert statuses.count(TransferStatus.APPROVED) == 7
        assert all(r.is_consistent for r in ledger.reconcile_all())

    def test_same_transfer_completed_once(self, ledger, admin, bases, equipment, stock):
        bragg, hood, m4 = bases["bragg"], bases["hood"], equipment["m4"]
        stock(bragg, m4, 30)
        t = ledger.create_transfer(CreateTransfer(bragg, hood, m4, 10, date(2024, 1, 2)), admin)
        ledger.approve_transfer(t.id, admin)

        barrier = Barrier(6, timeout=30)

        def complete(_):
            barrier.wait()
            try:
                ledger.complete_transfer(t.id, admin)
                return "ok"
            except Exception as exc:
                return type(exc).__name__

        with ThreadPoolExecutor(max_workers=6) as pool:
            outcomes = list(pool.map(complete, range(6)))

        assert outcomes.count("ok") == 1
        assert outcomes.count("InvalidTransferTransitionError") == 5
        assert ledger.get_balance(bragg, m4) == 20
        assert ledger.get_balance(hood, m4) == 10

    def test_crossing_completions_do_not_deadlock(
        self, ledger, admin, bases, equipment, stock, settings
    ):
        """Bragg->Pendleton and Pendleton->Bragg completions race on the same pair of rows."""
        bragg, pendleton, m4 = bases["bragg"], bases["pendleton"], equipment["m4"]
        stock(bragg, m4, 20)
        stock(pendleton, m4, 20)

        transfers = []
        for i in range(12):
            source, target = (bragg, pendleton) if i % 2 == 0 else (pendleton, bragg)
            t = ledger.create_transfer(
                CreateTransfer(source, target, m4, 5, date(2024, 1, 2)), admin
            )
            ledger.approve_transfer(t.id, admin)
            transfers.append(t)

        results = _race(
            len(transfers),
            lambda i: ledger.complete_transfer(transfers[i].id, admin),
            timeout=settings.lock_timeout_seconds,
        )

        assert {r[0] for r in results} <= {"ok", "insufficient"}
        completed = [t for t, r in zip(transfers, results) if r[0] == "ok"]
        assert completed
        moved_out_of_bragg = sum(5 if t.from_base_id == bragg else -5 for t in completed)
        assert ledger.get_balance(bragg, m4) == 20 - moved_out_of_bragg
        assert ledger.get_balance(pendleton, m4) == 20 + moved_out_of_bragg

        statuses = {t.id: ledger.get_transfer(t.id).status for t in transfers}
        assert [statuses[t.id] for t in completed] == [TransferStatus.COMPLETED] * len(completed)
        assert all(r.is_consistent for r in ledger.reconcile_all())


class TestConcurrentExpenditures:
    def test_never_overdrawn(self, ledger, admin, bases, equipment, stock):
        bragg, ammo = bases["bragg"], equipment["ammo"]
        stock(bragg, ammo, 10)

        results = _race(
            20,
            lambda i: ledger.record_expenditure(
                RecordExpenditure(bragg, ammo, 1, f"Round {i}", date(2024, 1, 3)), admin
            ),
        )

        outcomes = [r[0] for r in results]
        assert outcomes.count("ok") == 10
        assert outcomes.count("insufficient") == 10
        assert ledger.get_balance(bragg, ammo) == 0


class TestConcurrentPurchases:
    def test_first_purchases_into_new_pair(self, ledger, admin, bases, equipment, stock):
        """All writers race to create the same balance row."""
        hood, hmmwv = bases["hood"], equipment["hmmwv"]

        results = _race(10, lambda i: stock(hood, hmmwv, 5))

        assert [r[0] for r in results] == ["ok"] * 10
        assert ledger.get_balance(hood, hmmwv) == 50
        seqs = [m.seq for m in ledger.list_movements(hood, admin)]
        assert len(seqs) == len(set(seqs)) == 10
