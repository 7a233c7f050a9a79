"""In-process key locks used by the ledger's write path."""

import threading
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import ConcurrencyConflictError
from inventory_kernel.services.key_locks import KeyLockRegistry, balance_key, record_key


def test_key_builders():
    base, item = uuid4(), uuid4()
    assert balance_key(base, item) == ("balance", str(base), str(item))
    assert record_key("transfer", base) == ("transfer", str(base))


def test_reentry_from_other_thread_times_out():
    registry = KeyLockRegistry()
    key = ("balance", "a", "b")
    outcome = {}

    def contender():
        try:
            with registry.hold([key], timeout=0.05, operation="record_expenditure"):
                outcome["acquired"] = True
        except ConcurrencyConflictError as exc:
            outcome["error"] = exc

    with registry.hold([key], timeout=1):
        t = threading.Thread(target=contender)
        t.start()
        t.join()

    assert "acquired" not in outcome
    assert outcome["error"].operation == "record_expenditure"
    assert outcome["error"].code == "CONCURRENCY_CONFLICT"


def test_partial_acquisition_released_on_timeout():
    registry = KeyLockRegistry()
    first, second = ("a",), ("b",)
    blocked = threading.Event()
    release = threading.Event()

    def holder():
        with registry.hold([second], timeout=1):
            blocked.set()
            release.wait(2)

    t = threading.Thread(target=holder)
    t.start()
    blocked.wait(2)
    with pytest.raises(ConcurrencyConflictError):
        with registry.hold([second, first], timeout=0.05):
            pass
    release.set()
    t.join()

    # "a" was taken before "b" timed out and must be free again
    with registry.hold([first], timeout=0.05):
        pass


def test_duplicate_keys_collapse():
    registry = KeyLockRegistry()
    key = ("transfer", "x")
    with registry.hold([key, key], timeout=0.05):
        pass
