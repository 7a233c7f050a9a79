"""
AuditSink -- where committed ledger mutations are reported.

Responsibility:
    Receives one call per committed write operation with before/after
    snapshots of the affected record.  The ledger calls the sink only after
    its transaction has committed and never lets a sink failure reach the
    caller.

Implementations:
    DatabaseAuditSink  -- writes ``audit_log`` rows in its own session.
    InMemoryAuditSink  -- keeps entries in a list (tests, local tooling).
    NullAuditSink      -- discards everything.
"""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import session_scope
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import AuditLogEntry

logger = get_logger("services.audit_sink")


def snapshot(record: Any) -> dict[str, Any] | None:
    """JSON-safe dict of a DTO (or None)."""
    if record is None:
        return None
    raw = dataclasses.asdict(record) if dataclasses.is_dataclass(record) else dict(record)
    return {key: _json_safe(value) for key, value in raw.items()}


def _json_safe(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


@dataclass(frozen=True)
class AuditEntry:
    action: str
    entity: str
    record_id: UUID | str
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    actor_id: UUID | None


@runtime_checkable
class AuditSink(Protocol):
    def record(
        self,
        action: str,
        entity: str,
        record_id: UUID | str,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        actor_id: UUID | None,
    ) -> None: ...


class NullAuditSink:
    def record(self, action, entity, record_id, before, after, actor_id) -> None:
        return None


class InMemoryAuditSink:
    """Collects entries in order; thread-safe."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.entries: list[AuditEntry] = []

    def record(self, action, entity, record_id, before, after, actor_id) -> None:
        with self._lock:
            self.entries.append(
                AuditEntry(action, entity, record_id, before, after, actor_id)
            )

    def actions(self) -> list[str]:
        with self._lock:
            return [e.action for e in self.entries]


class DatabaseAuditSink:
    """Writes one ``audit_log`` row per call in a separate transaction."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def record(self, action, entity, record_id, before, after, actor_id) -> None:
        with session_scope(self._session_factory) as session:
            session.add(
                AuditLogEntry(
                    action=action,
                    table_name=entity,
                    record_id=str(record_id),
                    old_values=before,
                    new_values=after,
                    actor_id=actor_id,
                    occurred_at=self._clock.now(),
                )
            )
        logger.debug(
            "audit_entry_written",
            extra={"action": action, "table_name": entity, "record_id": str(record_id)},
        )
