"""
InventoryLedger -- the kernel's single entry point.

Responsibility:
    Owns the transaction boundary for every ledger operation.  Each write
    runs through ``_execute``:

        key locks (sorted) -> session_scope() -> row locks -> validate
        -> entity + journal + balance -> commit -> release -> audit

    Transient database failures (OperationalError: deadlock, lock timeout,
    SQLite busy) are retried with linear backoff up to
    ``settings.retry_attempts`` and then surface as
    ConcurrencyConflictError.  Business errors are never retried.

Architecture position:
    Kernel > Services -- imperative shell.  Wires the flush-only services
    and the read-only selectors to one session per attempt.

Collaborators:
    BaseAuthority  -- may this actor act on this base?
    AuditSink      -- told about every committed mutation, after commit.
                      A failing sink is logged (``audit_sink_failed``) and
                      never affects the caller.
    Clock          -- timestamps and default business dates.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.config import KernelSettings
from inventory_kernel.db.engine import get_session_factory, session_scope
from inventory_kernel.domain.authority import Actor, BaseAuthority, RoleBaseAuthority
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    AssignmentRecord,
    BalanceRecord,
    BaseRecord,
    DashboardFilters,
    EquipmentTypeRecord,
    ExpenditureRecord,
    MovementRecord,
    Page,
    PurchaseRecord,
    TransferRecord,
)
from inventory_kernel.domain.metrics import InventoryMetrics, ReconciliationResult
from inventory_kernel.domain.requests import (
    CreateAssignment,
    CreateTransfer,
    ListQuery,
    MetricsQuery,
    RecordExpenditure,
    RecordPurchase,
    ReturnAssignment,
)
from inventory_kernel.exceptions import ConcurrencyConflictError, UnauthorizedError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models import MilitaryBase
from inventory_kernel.selectors.metrics_selector import MetricsSelector
from inventory_kernel.selectors.reconciliation_selector import ReconciliationSelector
from inventory_kernel.selectors.record_selector import RecordSelector
from inventory_kernel.services.assignment_service import AssignmentService
from inventory_kernel.services.audit_sink import AuditSink, DatabaseAuditSink, snapshot
from inventory_kernel.services.balance_store import BalanceStore
from inventory_kernel.services.expenditure_service import ExpenditureService
from inventory_kernel.services.journal import MovementJournal
from inventory_kernel.services.key_locks import (
    KeyLockRegistry,
    LockKey,
    balance_key,
    default_registry,
    record_key,
)
from inventory_kernel.services.purchase_service import PurchaseService
from inventory_kernel.services.reference_data_service import ReferenceDataService
from inventory_kernel.services.transfer_service import TransferService

logger = get_logger("services.ledger")

R = TypeVar("R")

_BASES_KEY: LockKey = ("reference", "bases")
_EQUIPMENT_TYPES_KEY: LockKey = ("reference", "equipment_types")


@dataclass(frozen=True)
class _Mutation:
    """What a committed write reports to the audit sink."""

    result: Any
    entity: str
    record_id: UUID
    before: Any = None


class InventoryLedger:
    """
    Records purchases, transfers, assignments and expenditures and answers
    balance, listing and metrics queries.

    Usage:
        ledger = InventoryLedger(get_session_factory())
        ledger.record_purchase(RecordPurchase(...), actor)
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        authority: BaseAuthority | None = None,
        audit_sink: AuditSink | None = None,
        clock: Clock | None = None,
        settings: KernelSettings | None = None,
        lock_registry: KeyLockRegistry | None = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._authority = authority or RoleBaseAuthority()
        self._clock = clock or SystemClock()
        self._audit_sink = audit_sink or DatabaseAuditSink(self._session_factory, self._clock)
        self._settings = settings or KernelSettings()
        self._locks = lock_registry or default_registry

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    def _execute(
        self,
        operation: str,
        actor: Actor,
        lock_keys: Iterable[LockKey],
        work: Callable[[Session], _Mutation],
        entity_id: UUID | None = None,
    ) -> Any:
        keys = list(lock_keys)
        attempts = max(1, self._settings.retry_attempts)

        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor.actor_id),
            operation=operation,
            entity_id=str(entity_id) if entity_id is not None else None,
        ):
            t0 = time.monotonic()
            for attempt in range(1, attempts + 1):
                try:
                    with self._locks.hold(
                        keys, self._settings.lock_timeout_seconds, operation
                    ):
                        with session_scope(self._session_factory) as session:
                            mutation = work(session)
                    break
                except OperationalError as exc:
                    if attempt >= attempts:
                        logger.error(
                            "operation_retries_exhausted",
                            extra={"attempts": attempt},
                            exc_info=True,
                        )
                        raise ConcurrencyConflictError(
                            operation, attempt, str(exc.orig or exc)
                        ) from exc
                    logger.warning(
                        "operation_retry",
                        extra={"attempt": attempt, "reason": type(exc.orig).__name__},
                    )
                    time.sleep(self._settings.retry_backoff_seconds * attempt)
                except Exception as exc:
                    logger.warning(
                        "operation_failed",
                        extra={
                            "error_code": getattr(exc, "code", type(exc).__name__),
                            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                        },
                    )
                    raise

            logger.info(
                "operation_committed",
                extra={
                    "entity": mutation.entity,
                    "record_id": str(mutation.record_id),
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            self._audit(operation, actor, mutation)
        return mutation.result

    def _audit(self, operation: str, actor: Actor, mutation: _Mutation) -> None:
        try:
            self._audit_sink.record(
                operation,
                mutation.entity,
                mutation.record_id,
                snapshot(mutation.before),
                snapshot(mutation.result),
                actor.actor_id,
            )
        except Exception:
            logger.error(
                "audit_sink_failed",
                extra={"entity": mutation.entity, "record_id": str(mutation.record_id)},
                exc_info=True,
            )

    def _read(self, fn: Callable[[Session], R]) -> R:
        with session_scope(self._session_factory) as session:
            return fn(session)

    def _visible_base_ids(self, session: Session, actor: Actor) -> frozenset[UUID] | None:
        """None for admins (unrestricted), else the bases the authority allows."""
        if actor.is_admin:
            return None
        all_ids = session.execute(select(MilitaryBase.id)).scalars()
        return frozenset(b for b in all_ids if self._authority.can_act_on_base(actor, b))

    def _journal(self, session: Session) -> MovementJournal:
        return MovementJournal(session, self._clock)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def record_purchase(self, request: RecordPurchase, actor: Actor) -> PurchaseRecord:
        def work(session: Session) -> _Mutation:
            journal = self._journal(session)
            journal.balances.lock([(request.base_id, request.equipment_type_id)])
            record = PurchaseService(session, self._clock, journal).record_purchase(
                request, actor
            )
            return _Mutation(record, "purchases", record.id)

        return self._execute(
            "record_purchase",
            actor,
            [balance_key(request.base_id, request.equipment_type_id)],
            work,
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def _transfers(self, session: Session) -> TransferService:
        return TransferService(session, self._clock, self._authority, self._journal(session))

    def create_transfer(self, request: CreateTransfer, actor: Actor) -> TransferRecord:
        def work(session: Session) -> _Mutation:
            record = self._transfers(session).create(request, actor)
            return _Mutation(record, "transfers", record.id)

        return self._execute("create_transfer", actor, [], work)

    def get_transfer(self, transfer_id: UUID) -> TransferRecord:
        return self._read(lambda s: self._transfers(s).get(transfer_id))

    def _transition(
        self,
        operation: str,
        transfer_id: UUID,
        actor: Actor,
        apply: Callable[[TransferService], TransferRecord],
        moves_balances: bool = False,
    ) -> TransferRecord:
        keys = [record_key("transfer", transfer_id)]
        if moves_balances:
            current = self.get_transfer(transfer_id)
            keys += [
                balance_key(current.from_base_id, current.equipment_type_id),
                balance_key(current.to_base_id, current.equipment_type_id),
            ]

        def work(session: Session) -> _Mutation:
            service = self._transfers(session)
            before = TransferRecord.from_model(service.load(transfer_id, for_update=True))
            record = apply(service)
            return _Mutation(record, "transfers", record.id, before)

        return self._execute(operation, actor, keys, work, entity_id=transfer_id)

    def approve_transfer(self, transfer_id: UUID, actor: Actor) -> TransferRecord:
        return self._transition(
            "approve_transfer", transfer_id, actor, lambda s: s.approve(transfer_id, actor)
        )

    def reject_transfer(self, transfer_id: UUID, actor: Actor) -> TransferRecord:
        return self._transition(
            "reject_transfer", transfer_id, actor, lambda s: s.reject(transfer_id, actor)
        )

    def cancel_transfer(self, transfer_id: UUID, actor: Actor) -> TransferRecord:
        return self._transition(
            "cancel_transfer", transfer_id, actor, lambda s: s.cancel(transfer_id, actor)
        )

    def complete_transfer(
        self, transfer_id: UUID, actor: Actor, completion_date=None
    ) -> TransferRecord:
        return self._transition(
            "complete_transfer",
            transfer_id,
            actor,
            lambda s: s.complete(transfer_id, actor, completion_date),
            moves_balances=True,
        )

    # ------------------------------------------------------------------
    # Assignments and expenditures
    # ------------------------------------------------------------------

    def _assignments(self, session: Session) -> AssignmentService:
        return AssignmentService(
            session, self._clock, self._authority, self._journal(session)
        )

    def create_assignment(self, request: CreateAssignment, actor: Actor) -> AssignmentRecord:
        def work(session: Session) -> _Mutation:
            journal = self._journal(session)
            journal.balances.lock([(request.base_id, request.equipment_type_id)])
            record = AssignmentService(
                session, self._clock, self._authority, journal
            ).assign(request, actor)
            return _Mutation(record, "assignments", record.id)

        return self._execute(
            "create_assignment",
            actor,
            [balance_key(request.base_id, request.equipment_type_id)],
            work,
        )

    def get_assignment(self, assignment_id: UUID) -> AssignmentRecord:
        return self._read(lambda s: self._assignments(s).get(assignment_id))

    def return_assignment(self, request: ReturnAssignment, actor: Actor) -> AssignmentRecord:
        current = self.get_assignment(request.assignment_id)

        def work(session: Session) -> _Mutation:
            service = self._assignments(session)
            before = AssignmentRecord.from_model(
                service.load(request.assignment_id, for_update=True)
            )
            record = service.return_assignment(request, actor)
            return _Mutation(record, "assignments", record.id, before)

        return self._execute(
            "return_assignment",
            actor,
            [
                record_key("assignment", request.assignment_id),
                balance_key(current.base_id, current.equipment_type_id),
            ],
            work,
            entity_id=request.assignment_id,
        )

    def record_expenditure(
        self, request: RecordExpenditure, actor: Actor
    ) -> ExpenditureRecord:
        def work(session: Session) -> _Mutation:
            journal = self._journal(session)
            journal.balances.lock([(request.base_id, request.equipment_type_id)])
            record = ExpenditureService(
                session, self._clock, self._authority, journal
            ).record_expenditure(request, actor)
            return _Mutation(record, "expenditures", record.id)

        return self._execute(
            "record_expenditure",
            actor,
            [balance_key(request.base_id, request.equipment_type_id)],
            work,
        )

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def create_base(
        self,
        actor: Actor,
        name: str,
        location: str,
        commander_name: str | None = None,
        contact_email: str | None = None,
        contact_phone: str | None = None,
    ) -> BaseRecord:
        def work(session: Session) -> _Mutation:
            record = ReferenceDataService(session).create_base(
                actor,
                name,
                location,
                commander_name=commander_name,
                contact_email=contact_email,
                contact_phone=contact_phone,
            )
            return _Mutation(record, "bases", record.id)

        return self._execute("create_base", actor, [_BASES_KEY], work)

    def update_base(self, actor: Actor, base_id: UUID, **changes: str | None) -> BaseRecord:
        def work(session: Session) -> _Mutation:
            service = ReferenceDataService(session)
            before = service.get_base(base_id)
            record = service.update_base(actor, base_id, **changes)
            return _Mutation(record, "bases", record.id, before)

        return self._execute("update_base", actor, [_BASES_KEY], work)

    def delete_base(self, actor: Actor, base_id: UUID) -> None:
        def work(session: Session) -> _Mutation:
            service = ReferenceDataService(session)
            before = service.get_base(base_id)
            service.delete_base(actor, base_id)
            return _Mutation(None, "bases", base_id, before)

        self._execute("delete_base", actor, [_BASES_KEY], work)

    def create_equipment_type(
        self, actor: Actor, name: str, category: str | None = None
    ) -> EquipmentTypeRecord:
        def work(session: Session) -> _Mutation:
            record = ReferenceDataService(session).create_equipment_type(
                actor, name, category
            )
            return _Mutation(record, "equipment_types", record.id)

        return self._execute("create_equipment_type", actor, [_EQUIPMENT_TYPES_KEY], work)

    def get_base(self, base_id: UUID) -> BaseRecord:
        return self._read(lambda s: ReferenceDataService(s).get_base(base_id))

    def get_equipment_type(self, equipment_type_id: UUID) -> EquipmentTypeRecord:
        return self._read(lambda s: ReferenceDataService(s).get_equipment_type(equipment_type_id))

    def list_bases(self) -> list[BaseRecord]:
        return self._read(lambda s: ReferenceDataService(s).list_bases())

    def list_equipment_types(self) -> list[EquipmentTypeRecord]:
        return self._read(lambda s: ReferenceDataService(s).list_equipment_types())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_balance(self, base_id: UUID, equipment_type_id: UUID) -> int:
        return self._read(lambda s: BalanceStore(s).get_balance(base_id, equipment_type_id))

    def list_balances(self, query: ListQuery, actor: Actor) -> Page[BalanceRecord]:
        """Current inventory of the bases the actor may see, one row per pair."""
        return self._read(
            lambda s: RecordSelector(s).list_balances(query, self._visible_base_ids(s, actor))
        )

    def get_metrics(self, query: MetricsQuery, actor: Actor) -> InventoryMetrics:
        """
        Metrics over the requested bases the actor has authority over.

        ``query.base_ids=None`` means every base the actor may see.
        Requested bases outside the actor's authority are dropped.
        """

        def run(session: Session) -> InventoryMetrics:
            visible = self._visible_base_ids(session, actor)
            if visible is None:
                visible = frozenset(session.execute(select(MilitaryBase.id)).scalars())
            scope = visible if query.base_ids is None else query.base_ids & visible
            return MetricsSelector(session).get_metrics(
                scope, query.equipment_type_id, query.date_range
            )

        return self._read(run)

    def get_dashboard_filters(self, actor: Actor) -> DashboardFilters:
        def run(session: Session) -> DashboardFilters:
            reference = ReferenceDataService(session)
            return DashboardFilters(
                bases=tuple(reference.list_bases(self._visible_base_ids(session, actor))),
                equipment_types=tuple(reference.list_equipment_types()),
            )

        return self._read(run)

    def get_purchase(self, purchase_id: UUID) -> PurchaseRecord:
        return self._read(lambda s: RecordSelector(s).get_purchase(purchase_id))

    def get_expenditure(self, expenditure_id: UUID) -> ExpenditureRecord:
        return self._read(lambda s: RecordSelector(s).get_expenditure(expenditure_id))

    def list_purchases(self, query: ListQuery, actor: Actor) -> Page[PurchaseRecord]:
        return self._read(
            lambda s: RecordSelector(s).list_purchases(query, self._visible_base_ids(s, actor))
        )

    def list_transfers(self, query: ListQuery, actor: Actor) -> Page[TransferRecord]:
        return self._read(
            lambda s: RecordSelector(s).list_transfers(query, self._visible_base_ids(s, actor))
        )

    def list_assignments(self, query: ListQuery, actor: Actor) -> Page[AssignmentRecord]:
        return self._read(
            lambda s: RecordSelector(s).list_assignments(query, self._visible_base_ids(s, actor))
        )

    def list_expenditures(self, query: ListQuery, actor: Actor) -> Page[ExpenditureRecord]:
        return self._read(
            lambda s: RecordSelector(s).list_expenditures(
                query, self._visible_base_ids(s, actor)
            )
        )

    def list_movements(
        self,
        base_id: UUID,
        actor: Actor,
        equipment_type_id: UUID | None = None,
    ) -> list[MovementRecord]:
        if not self._authority.can_act_on_base(actor, base_id):
            raise UnauthorizedError(str(actor.actor_id), "view movements", str(base_id))
        return self._read(lambda s: RecordSelector(s).list_movements(base_id, equipment_type_id))

    def reconcile(self, base_id: UUID, equipment_type_id: UUID) -> ReconciliationResult:
        return self._read(
            lambda s: ReconciliationSelector(s).reconcile(base_id, equipment_type_id)
        )

    def reconcile_all(self) -> list[ReconciliationResult]:
        return self._read(lambda s: ReconciliationSelector(s).reconcile_all())
