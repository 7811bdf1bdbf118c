"""Drive the planned operations to completion, one store mutation at a time.

Nothing is persisted between calls. Every ``start``/``poll`` re-reads the
table, re-resolves ownership and re-plans, so a re-delivered or stale
lifecycle event is harmless and drift made by someone else between polls is
picked up on the next call.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import InvalidOperationError
from .model import IndexConfiguration, IndexInfo, Operation, OperationResult, OperationType, RequestKind, TargetStatus
from .ownership import OwnershipResolution, collect_managed_names, resolve_candidates
from .planner import plan_operations
from .props import ManagerProps
from .store import IndexStore
from .validation import validate_manager_props

logger = logging.getLogger(__name__)

PHYSICAL_ID_PREFIX = "GSIManager-"

NO_OP_NEEDED = "NO_OP_NEEDED"
OPERATION_IN_FLIGHT = "OPERATION_IN_FLIGHT"
OPERATION_PENDING_START = "OPERATION_PENDING_START"
ALL_COMPLETE = "ALL_COMPLETE"


@dataclass(frozen=True)
class ReconcileRequest:
    kind: RequestKind
    props: ManagerProps
    prior_props: ManagerProps | None = None
    physical_id: str | None = None

    @property
    def resolved_physical_id(self) -> str:
        if self.physical_id:
            return self.physical_id
        return PHYSICAL_ID_PREFIX + (self.props.table_name or "UnknownTable")

    @property
    def table_name(self) -> str:
        return self.props.table_name

    @property
    def desired(self) -> tuple[IndexConfiguration, ...]:
        return self.props.global_secondary_indexes

    @property
    def managed_names(self) -> set[str]:
        prior = self.prior_props.global_secondary_indexes if self.prior_props is not None else None
        if self.kind != "UPDATE":
            prior = None
        return collect_managed_names(self.desired, prior)

    def summary(self, operations_executed: int | None = None) -> dict[str, Any]:
        names = self.props.index_names
        return {
            "operationsExecuted": len(names) if operations_executed is None else operations_executed,
            "managedIndexes": ",".join(names),
        }


@dataclass(frozen=True)
class Step:
    state: str
    operation: Operation | None = None
    in_flight: IndexInfo | None = None
    remaining: int = 0


@dataclass(frozen=True)
class StartResult:
    complete: bool
    physical_id: str
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class PollResult:
    complete: bool
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class ApplyResult:
    physical_id: str
    results: tuple[OperationResult, ...]
    data: dict[str, Any]


def target_status(operation_type: OperationType) -> TargetStatus:
    return "DELETED" if operation_type == "DELETE" else "ACTIVE"


def settled_status(gsi: IndexInfo) -> TargetStatus:
    """Status an in-flight index is heading for."""
    return "DELETED" if gsi.index_status == "DELETING" else "ACTIVE"


def pending_operations(
    request_kind: RequestKind,
    candidates: Sequence[IndexInfo],
    desired: Sequence[IndexConfiguration],
) -> list[Operation]:
    if request_kind == "DELETE":
        return [Operation.delete(gsi) for gsi in candidates]
    return plan_operations(candidates, desired)


def next_step(
    request_kind: RequestKind,
    candidates: Sequence[IndexInfo],
    desired: Sequence[IndexConfiguration],
) -> Step:
    """Decide what to do next from observed index statuses alone.

    Any candidate still CREATING, UPDATING or DELETING blocks every request
    kind; nothing new is started until it settles.
    """
    in_flight = next((gsi for gsi in candidates if gsi.in_flight), None)
    if in_flight is not None:
        return Step(state=OPERATION_IN_FLIGHT, in_flight=in_flight)

    operations = pending_operations(request_kind, candidates, desired)
    if not operations:
        return Step(state=ALL_COMPLETE)
    return Step(state=OPERATION_PENDING_START, operation=operations[0], remaining=len(operations))


class Reconciler:
    def __init__(self, store: IndexStore, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> IndexStore:
        return self._store

    def start(self, request: ReconcileRequest) -> StartResult:
        _validate(request)
        resolution = self._resolve(request)
        operations = pending_operations(request.kind, resolution.candidates, request.desired)
        step = next_step(request.kind, resolution.candidates, request.desired) if operations else Step(NO_OP_NEEDED)

        if step.state == NO_OP_NEEDED:
            logger.info("[GSI Manager] no GSI operations needed (table=%s)", request.table_name)
            return StartResult(
                complete=True,
                physical_id=request.resolved_physical_id,
                data=request.summary(operations_executed=0),
            )

        if step.state == OPERATION_IN_FLIGHT and step.in_flight is not None:
            logger.info(
                "[GSI Manager] %s is %s; deferring %d operation(s) to polling",
                step.in_flight.index_name,
                step.in_flight.index_status,
                len(operations),
            )
            return StartResult(complete=False, physical_id=request.resolved_physical_id)

        first = step.operation or operations[0]
        self._store.wait_for_table_stable(request.table_name)
        self._issue(request.table_name, first)
        logger.info(
            "[GSI Manager] started %s %s; total operations: %d",
            first.type,
            first.index_name,
            len(operations),
        )
        return StartResult(complete=False, physical_id=request.resolved_physical_id)

    def poll(self, request: ReconcileRequest) -> PollResult:
        _validate(request)
        candidates = self._resolve(request).candidates
        table_name = request.table_name

        step = next_step(request.kind, candidates, request.desired)
        if step.state == OPERATION_IN_FLIGHT and step.in_flight is not None:
            gsi = step.in_flight
            target = settled_status(gsi)
            if self._store.is_index_in_status(table_name, gsi.index_name, target):
                logger.info("[GSI Manager] %s reached %s", gsi.index_name, target)
            else:
                logger.info("[GSI Manager] waiting for %s (status: %s)", gsi.index_name, gsi.index_status)
            return PollResult(complete=False)

        if step.state == ALL_COMPLETE or step.operation is None:
            logger.info("[GSI Manager] all GSI operations complete (table=%s, request=%s)", table_name, request.kind)
            return PollResult(complete=True, data=request.summary())

        operation = step.operation
        logger.info(
            "[GSI Manager] %d pending operation(s); next %s %s",
            step.remaining,
            operation.type,
            operation.index_name,
        )
        if not self._store.is_table_stable(table_name):
            logger.info("[GSI Manager] waiting for table %s to become ACTIVE", table_name)
            return PollResult(complete=False)

        existing = next((gsi for gsi in candidates if gsi.index_name == operation.index_name), None)
        if operation.type == "CREATE":
            if existing is None:
                self._issue(table_name, operation)
            else:
                logger.info(
                    "[GSI Manager] CREATE %s in progress (status: %s)",
                    operation.index_name,
                    existing.index_status,
                )
        elif operation.type == "DELETE":
            if existing is not None and existing.index_status != "DELETING":
                self._issue(table_name, operation)
            else:
                logger.info("[GSI Manager] DELETE %s in progress", operation.index_name)
        elif operation.type == "UPDATE":
            self._issue(table_name, operation)
        else:
            raise InvalidOperationError(f"unknown operation type: {operation.type}")

        return PollResult(complete=False)

    def apply(self, request: ReconcileRequest) -> ApplyResult:
        """Run every pending operation to completion, blocking on each one.

        Indexes already in flight are waited out before the first mutation.
        """
        _validate(request)
        resolution = self._resolve_settled(request)
        operations = pending_operations(request.kind, resolution.candidates, request.desired)
        table_name = request.table_name

        if not operations:
            logger.info("[GSI Manager] no GSI operations to execute (table=%s)", table_name)
            return ApplyResult(
                physical_id=request.resolved_physical_id,
                results=(),
                data=request.summary(operations_executed=0),
            )

        total = len(operations)
        started_at = self._clock()
        logger.info("[GSI Manager] starting %d GSI operation(s) (table=%s)", total, table_name)

        self._store.wait_for_table_stable(table_name)
        results: list[OperationResult] = []
        for position, operation in enumerate(operations, start=1):
            op_started_at = self._clock()
            logger.info("[GSI Manager][start %d/%d] %s %s", position, total, operation.type, operation.index_name)

            self._issue(table_name, operation)
            self._store.wait_for_table_stable(table_name)
            self._store.wait_for_index_status(table_name, operation.index_name, target_status(operation.type))
            results.append(OperationResult(success=True, operation=operation.type, index_name=operation.index_name))

            logger.info(
                "[GSI Manager][done %d/%d] %s %s (progress %.1f%%, elapsed %.1fs)",
                position,
                total,
                operation.type,
                operation.index_name,
                len(results) / total * 100,
                self._clock() - op_started_at,
            )

        logger.info(
            "[GSI Manager] completed all GSI operations (table=%s, total %.1fs)",
            table_name,
            self._clock() - started_at,
        )
        return ApplyResult(
            physical_id=request.resolved_physical_id,
            results=tuple(results),
            data=request.summary(operations_executed=len(results)),
        )

    def _resolve(self, request: ReconcileRequest) -> OwnershipResolution:
        observed = self._store.list_indexes(request.table_name)
        resolution = resolve_candidates(request.kind, observed, request.managed_names)
        if resolution.adopted:
            logger.info(
                "[GSI Manager] detected %d GSI(s) not present in configuration; including them in cleanup",
                resolution.untracked_count,
            )
        return resolution

    def _resolve_settled(self, request: ReconcileRequest) -> OwnershipResolution:
        resolution = self._resolve(request)
        in_flight = [gsi for gsi in resolution.candidates if gsi.in_flight]
        if not in_flight:
            return resolution

        for gsi in in_flight:
            target = settled_status(gsi)
            logger.info(
                "[GSI Manager] waiting for %s (status: %s) to reach %s before applying",
                gsi.index_name,
                gsi.index_status,
                target,
            )
            self._store.wait_for_index_status(request.table_name, gsi.index_name, target)
        return self._resolve(request)

    def _issue(self, table_name: str, operation: Operation) -> None:
        if operation.type == "DELETE":
            self._store.delete_index(table_name, operation.index_name)
        elif operation.type in ("CREATE", "UPDATE"):
            config = operation.desired_configuration
            if config is None:
                raise InvalidOperationError(
                    f"{operation.type} operation missing desired configuration for {operation.index_name}"
                )
            if operation.type == "CREATE":
                self._store.create_index(table_name, config)
            else:
                self._store.update_index(table_name, config)
        else:
            raise InvalidOperationError(f"unknown operation type for {operation.index_name}: {operation.type}")
        logger.info("[GSI Manager] %s operation started for %s", operation.type, operation.index_name)


def _validate(request: ReconcileRequest) -> None:
    # DELETE needs only the table name
    validate_manager_props(request.props, check_indexes=request.kind != "DELETE")
