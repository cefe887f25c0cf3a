"""
Auto-Assignment Service

Picks a worker for a newly active department by current workload, or leaves
the department queued until a worker frees up.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from goldflow.core.observability import get_logger, record_assignment

from ...shared.base import utc_now
from ...shared.exceptions import (
    AlreadyCompletedError,
    AlreadyStartedError,
    OrderNotFoundError,
    TrackingNotFoundError,
)
from ..entities.order import Order
from ..entities.tracking import DepartmentTracking
from ..entities.worker import Worker, WorkerWorkload
from ..events import notifications
from ..events.notifications import Actor, NotificationEvent
from ..repositories.tracking_store import TrackingStore
from ..value_objects import sequence
from ..value_objects.enums import DepartmentName, DepartmentStatus, OrderStatus
from . import transition_validator as validator

logger = get_logger(__name__)

DEFAULT_MAX_WORKLOAD = 5


@dataclass
class AssignmentResult:
    """Outcome of one assignment attempt."""

    order_id: UUID
    department: DepartmentName
    assigned: bool
    queued: bool
    worker_id: UUID | None = None
    worker_name: str | None = None
    queue_position: int | None = None
    message: str = ""
    events: list[NotificationEvent] = field(default_factory=list)


def select_worker(candidates: list[WorkerWorkload]) -> WorkerWorkload | None:
    """
    Lowest workload wins; among equals the least recently assigned worker.

    A worker with workload 0 therefore always beats a busy one.
    """
    if not candidates:
        return None
    return min(candidates, key=lambda candidate: candidate.fairness_key)


class AutoAssignmentService:
    """
    Workload-balanced worker assignment over a transactional tracking store.

    Workloads are read through the store immediately before assignment; the
    store locks the worker rows so concurrent assignments are serialized per
    worker.
    """

    def __init__(
        self,
        store: TrackingStore,
        max_workload: int = DEFAULT_MAX_WORKLOAD,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._max_workload = max_workload
        self._clock = clock

    @property
    def max_workload(self) -> int:
        return self._max_workload

    def assign(
        self, order_id: UUID, department: DepartmentName, actor: Actor | None = None
    ) -> AssignmentResult:
        """
        Assign the best available worker to an order's department and start it.

        Raises:
            OrderNotFoundError: If the order does not exist
            TrackingNotFoundError: If the department has no tracking record
            AlreadyStartedError: If the department is already active
            AlreadyCompletedError: If the department is completed
        """
        order = self._store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        tracking = self._store.get_tracking(order_id, department)
        if tracking is None:
            raise TrackingNotFoundError(order_id, department.value)
        if tracking.status == DepartmentStatus.COMPLETED:
            raise AlreadyCompletedError(order_id, department.value)
        if tracking.status.is_active:
            raise AlreadyStartedError(order_id, department.value)

        validator.ensure_no_other_active(
            department, validator.status_map(self._store.list_tracking(order_id))
        )

        if tracking.assigned_worker_id is not None:
            preassigned = self._store.get_worker(tracking.assigned_worker_id)
            if preassigned is not None and preassigned.is_active:
                return self._start_with(order, tracking, preassigned, actor)

        candidates = self._store.find_workers_by_department(department)
        best = select_worker(candidates)

        if best is None or best.workload >= self._max_workload:
            position = self._queue_position(tracking)
            reason = (
                "No active workers in department"
                if best is None
                else "All workers at maximum workload"
            )
            record_assignment(department.value, "queued")
            logger.info(
                "department_queued",
                order_id=str(order_id),
                department=department.value,
                queue_position=position,
                reason=reason,
            )
            return AssignmentResult(
                order_id=order_id,
                department=department,
                assigned=False,
                queued=True,
                queue_position=position,
                message=f"{reason}. Order queued at position {position}",
            )

        return self._start_with(order, tracking, best.worker, actor)

    def process_waiting_queue(
        self, department: DepartmentName, worker_id: UUID, actor: Actor | None = None
    ) -> AssignmentResult | None:
        """
        Hand the oldest eligible waiting record of a department to a freed worker.

        Entries are eligible when their order is in the factory, every earlier
        department is completed and nothing else in that order is in progress.
        Returns None when the worker cannot take more work or nothing is waiting.
        """
        worker = self._store.get_worker(worker_id)
        if worker is None or not worker.is_active or worker.department != department:
            return None

        workload = self._store.count_worker_tracking(
            worker_id, [DepartmentStatus.IN_PROGRESS]
        )
        if workload >= self._max_workload:
            return None

        for order, waiting in self._eligible_waiting(department):
            logger.info(
                "queue_backfill",
                order_id=str(order.id),
                department=department.value,
                worker_id=str(worker_id),
            )
            return self._start_with(order, waiting, worker, actor)

        return None

    def get_pending_assignments_count(self, worker_id: UUID) -> int:
        return self._store.count_worker_tracking(
            worker_id, [DepartmentStatus.NOT_STARTED, DepartmentStatus.IN_PROGRESS]
        )

    def _start_with(
        self,
        order: Order,
        tracking: DepartmentTracking,
        worker: Worker,
        actor: Actor | None,
    ) -> AssignmentResult:
        now = self._clock()
        previous = tracking.status
        tracking.assign_worker(worker.id)
        tracking.start(started_at=now)
        self._store.upsert_tracking(
            order.id, tracking.department_name, tracking.to_patch(), expected_status=previous
        )

        worker.record_assignment(now)
        self._store.save_worker(worker)

        record_assignment(tracking.department_name.value, "assigned")
        logger.info(
            "worker_auto_assigned",
            order_id=str(order.id),
            department=tracking.department_name.value,
            worker_id=str(worker.id),
        )
        return AssignmentResult(
            order_id=order.id,
            department=tracking.department_name,
            assigned=True,
            queued=False,
            worker_id=worker.id,
            worker_name=worker.name,
            message=f"Assigned to {worker.name} in "
            f"{sequence.display_name(tracking.department_name)}",
            events=[
                notifications.worker_assigned(
                    order, tracking.department_name, worker, actor, automatic=True
                )
            ],
        )

    def _eligible_waiting(
        self, department: DepartmentName
    ) -> Iterator[tuple[Order, DepartmentTracking]]:
        """Waiting records, oldest first, whose order could start this department now."""
        for waiting in self._store.find_waiting_tracking(department):
            order = self._store.get_order(waiting.order_id)
            if order is None or order.status != OrderStatus.IN_FACTORY:
                continue
            statuses = validator.status_map(self._store.list_tracking(order.id))
            if not validator.can_start_department(department, statuses).allowed:
                continue
            if validator.active_department(statuses) is not None:
                continue
            yield order, waiting

    def _queue_position(self, tracking: DepartmentTracking) -> int:
        queue = [
            waiting.order_id
            for _, waiting in self._eligible_waiting(tracking.department_name)
        ]
        if tracking.order_id in queue:
            return queue.index(tracking.order_id) + 1
        return len(queue) + 1
