"""
KeyLockRegistry -- in-process mutual exclusion per ledger key.

Responsibility:
    Serializes operations that touch the same balance pair or the same
    lifecycle record within one process.  On PostgreSQL the row locks taken
    inside the transaction already do this across processes; on SQLite row
    locks are no-ops and these locks are what keeps concurrent
    ``complete_transfer`` calls from overdrawing a balance.

Invariants enforced:
    - Keys are acquired in one global (sorted) order, so two operations
      that share keys can never deadlock on each other.
    - Locks are held until the caller's transaction has committed or
      rolled back (the ledger releases them after ``session_scope`` exits).

Failure modes:
    - ConcurrencyConflictError when a key cannot be acquired within
      ``timeout`` seconds.  Keys already taken by that call are released.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from uuid import UUID

from inventory_kernel.exceptions import ConcurrencyConflictError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.key_locks")

LockKey = tuple[str, ...]


def balance_key(base_id: UUID, equipment_type_id: UUID) -> LockKey:
    return ("balance", str(base_id), str(equipment_type_id))


def record_key(entity_type: str, record_id: UUID) -> LockKey:
    return (entity_type, str(record_id))


class KeyLockRegistry:
    """One ``threading.Lock`` per key, created on first use and kept."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[LockKey, threading.Lock] = {}

    def _lock_for(self, key: LockKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(
        self,
        keys: Iterable[LockKey],
        timeout: float,
        operation: str = "",
    ) -> Iterator[None]:
        """Acquire every key in sorted order, release all on exit."""
        ordered = sorted(set(keys))
        acquired: list[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                if not lock.acquire(timeout=timeout):
                    logger.warning(
                        "key_lock_timeout",
                        extra={"key": ":".join(key), "timeout": timeout},
                    )
                    raise ConcurrencyConflictError(
                        operation or "acquire_key_locks",
                        attempts=1,
                        reason=f"timed out waiting for {':'.join(key)}",
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


# Process-wide; ledgers built without an explicit registry share it.
default_registry = KeyLockRegistry()
