"""
Worker Work Service

The worker-facing side of a department: open the job, save drafts of form
data and attachments, and hand in the finished work. Status changes go
through the cascade controller, so a worker's completion carries weight,
assigns the next department and submits the order exactly as a manager's
completion would.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from goldflow.core.observability import get_logger

from ...shared.base import utc_now
from ...shared.exceptions import AlreadyCompletedError, OrderNotFoundError, WorkNotAssignedError
from ..entities.order import Order
from ..entities.tracking import DepartmentTracking
from ..entities.work_data import DepartmentWorkData
from ..events.notifications import Actor, NotificationEvent
from ..repositories.tracking_store import TrackingStore
from ..value_objects.enums import DepartmentStatus
from .cascade_controller import CascadeController, CompletionOutcome

logger = get_logger(__name__)


@dataclass
class WorkView:
    order: Order
    tracking: DepartmentTracking
    work_data: DepartmentWorkData | None


@dataclass
class WorkOutcome:
    tracking: DepartmentTracking
    work_data: DepartmentWorkData
    events: list[NotificationEvent] = field(default_factory=list)


@dataclass
class WorkCompletion:
    work_data: DepartmentWorkData
    completion: CompletionOutcome

    @property
    def tracking(self) -> DepartmentTracking:
        return self.completion.tracking

    @property
    def events(self) -> list[NotificationEvent]:
        return self.completion.events


class WorkerWorkService:
    """Work-data operations for the worker a department is assigned to."""

    def __init__(
        self,
        store: TrackingStore,
        controller: CascadeController | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._controller = controller or CascadeController(store, clock=clock)

    def get_work_data(self, order_id: UUID, worker_id: UUID) -> WorkView:
        """
        The worker's department on an order with whatever they saved so far.

        Raises:
            OrderNotFoundError: If the order does not exist
            WorkNotAssignedError: If no department of the order is assigned to the worker
        """
        order = self._load_order(order_id)
        tracking = self._assigned_tracking(order_id, worker_id)
        return WorkView(
            order=order,
            tracking=tracking,
            work_data=self._store.get_work_data(order_id, tracking.department_name),
        )

    def start_work(
        self, order_id: UUID, worker_id: UUID, actor: Actor | None = None
    ) -> WorkOutcome:
        """
        Open the work record, starting the department if it is still waiting.

        Raises:
            AlreadyCompletedError: If the worker's department is completed
        """
        self._load_order(order_id)
        tracking = self._assigned_tracking(order_id, worker_id)
        tracking, events = self._ensure_started(tracking, actor)

        work_data = self._work_data_for(tracking)
        work_data.start(tracking.started_at or self._clock())
        work_data = self._store.save_work_data(work_data)
        logger.info(
            "work_started",
            order_id=str(order_id),
            department=tracking.department_name.value,
            worker_id=str(worker_id),
        )
        return WorkOutcome(tracking=tracking, work_data=work_data, events=events)

    def save_work_progress(
        self,
        order_id: UUID,
        worker_id: UUID,
        form_data: dict[str, Any] | None = None,
        uploaded_files: list[str] | None = None,
        uploaded_photos: list[str] | None = None,
        actor: Actor | None = None,
    ) -> WorkOutcome:
        """
        Save a draft; the first save of a waiting department starts it.

        Each save replaces the previous draft's form data and attachments.

        Raises:
            AlreadyCompletedError: If the worker's department is completed
            PreviousDepartmentNotCompleteError: If starting is not allowed yet
        """
        self._load_order(order_id)
        tracking = self._assigned_tracking(order_id, worker_id)
        tracking, events = self._ensure_started(tracking, actor)

        work_data = self._work_data_for(tracking)
        work_data.record_progress(form_data, uploaded_files, uploaded_photos)
        work_data.save_draft(self._clock())
        work_data = self._store.save_work_data(work_data)
        logger.info(
            "work_progress_saved",
            order_id=str(order_id),
            department=tracking.department_name.value,
            worker_id=str(worker_id),
            file_count=work_data.file_count,
        )
        return WorkOutcome(tracking=tracking, work_data=work_data, events=events)

    def complete_work(
        self,
        order_id: UUID,
        worker_id: UUID,
        form_data: dict[str, Any] | None = None,
        uploaded_files: list[str] | None = None,
        uploaded_photos: list[str] | None = None,
        *,
        gold_weight_out: float | None = None,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> WorkCompletion:
        """
        Seal the work record and complete the department, cascading onwards.

        Time spent is measured from the department's start to now, in hours
        rounded to two decimals.

        Raises:
            AlreadyCompletedError: If the worker's department is completed
            NotStartedError: If the department was never started
        """
        self._load_order(order_id)
        tracking = self._assigned_tracking(order_id, worker_id)
        started_at = tracking.started_at

        completion = self._controller.complete_department(
            order_id,
            tracking.department_name,
            gold_weight_out=gold_weight_out,
            notes=notes,
            actor=actor,
        )

        work_data = self._work_data_for(tracking)
        work_data.record_progress(form_data, uploaded_files, uploaded_photos)
        work_data.complete(started_at, completion.tracking.completed_at or self._clock())
        work_data = self._store.save_work_data(work_data)
        logger.info(
            "work_completed",
            order_id=str(order_id),
            department=tracking.department_name.value,
            worker_id=str(worker_id),
            time_spent_hours=work_data.time_spent_hours,
            file_count=work_data.file_count,
        )
        return WorkCompletion(work_data=work_data, completion=completion)

    def _ensure_started(
        self, tracking: DepartmentTracking, actor: Actor | None
    ) -> tuple[DepartmentTracking, list[NotificationEvent]]:
        if tracking.status == DepartmentStatus.COMPLETED:
            raise AlreadyCompletedError(tracking.order_id, tracking.department_name.value)
        if not tracking.status.is_waiting:
            return tracking, []
        started = self._controller.start_department(
            tracking.order_id, tracking.department_name, actor=actor
        )
        return started.tracking, started.events

    def _assigned_tracking(self, order_id: UUID, worker_id: UUID) -> DepartmentTracking:
        """The worker's open department on the order, else their last completed one."""
        mine = [
            record
            for record in self._store.list_tracking(order_id)
            if record.assigned_worker_id == worker_id
        ]
        if not mine:
            raise WorkNotAssignedError(order_id, worker_id)
        chosen = next(
            (record for record in mine if record.status != DepartmentStatus.COMPLETED),
            mine[-1],
        )
        tracking = self._store.get_tracking(order_id, chosen.department_name)
        if tracking is None or tracking.assigned_worker_id != worker_id:
            raise WorkNotAssignedError(order_id, worker_id)
        return tracking

    def _work_data_for(self, tracking: DepartmentTracking) -> DepartmentWorkData:
        existing = self._store.get_work_data(tracking.order_id, tracking.department_name)
        if existing is not None:
            return existing
        return DepartmentWorkData(
            order_id=tracking.order_id, department_name=tracking.department_name
        )

    def _load_order(self, order_id: UUID) -> Order:
        order = self._store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order
