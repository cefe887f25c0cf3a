"""
Cascade Controller

Drives one order through the department sequence. Every operation works on a
single transactional TrackingStore, validates before mutating, and returns
the notification events it produced instead of delivering them.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from goldflow.core.observability import get_logger, record_transition

from ...shared.base import utc_now
from ...shared.exceptions import (
    AlreadyCompletedError,
    AlreadyStartedError,
    InvalidStatusTransitionError,
    NotStartedError,
    OrderNotFoundError,
    OrderNotInFactoryError,
    TrackingNotFoundError,
    WorkerInactiveError,
    WorkerNotFoundError,
)
from ..entities.order import Order
from ..entities.submission import FinalSubmission
from ..entities.tracking import DepartmentTracking
from ..events import notifications
from ..events.notifications import Actor, NotificationEvent
from ..repositories.tracking_store import TrackingStore
from ..value_objects import sequence
from ..value_objects.enums import DepartmentName, DepartmentStatus, OrderStatus
from . import transition_validator as validator
from .assignment_service import AssignmentResult, AutoAssignmentService
from .submission_service import FinalSubmissionService

logger = get_logger(__name__)


@dataclass
class TransitionOutcome:
    order: Order
    tracking: DepartmentTracking
    events: list[NotificationEvent] = field(default_factory=list)


@dataclass
class FactoryDispatch:
    order: Order
    departments_created: list[DepartmentName]
    first_department_assignment: AssignmentResult
    events: list[NotificationEvent] = field(default_factory=list)


@dataclass
class CompletionOutcome:
    order: Order
    tracking: DepartmentTracking
    next_department: DepartmentName | None = None
    next_assignment: AssignmentResult | None = None
    queue_assignment: AssignmentResult | None = None
    submission: FinalSubmission | None = None
    events: list[NotificationEvent] = field(default_factory=list)

    @property
    def order_completed(self) -> bool:
        return self.order.status == OrderStatus.COMPLETED


@dataclass
class MoveOutcome:
    order: Order
    tracking: DepartmentTracking
    force_completed: DepartmentName | None
    assignment: AssignmentResult
    queue_assignment: AssignmentResult | None = None
    events: list[NotificationEvent] = field(default_factory=list)


class CascadeController:
    """State machine driving one order end-to-end through the departments."""

    def __init__(
        self,
        store: TrackingStore,
        assignment_service: AutoAssignmentService | None = None,
        submission_service: FinalSubmissionService | None = None,
        auto_submit: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._assignments = assignment_service or AutoAssignmentService(store, clock=clock)
        self._submissions = submission_service or FinalSubmissionService(store, clock=clock)
        self._auto_submit = auto_submit

    def send_to_factory(self, order_id: UUID, actor: Actor | None = None) -> FactoryDispatch:
        """
        Release a draft order to the floor.

        Creates the missing tracking records, moves the order into the
        factory and auto-assigns the first department.

        Raises:
            OrderNotFoundError: If the order does not exist
            InvalidStatusTransitionError: If the order is not a draft
        """
        order = self._load_order(order_id)
        if order.status != OrderStatus.DRAFT:
            raise InvalidStatusTransitionError(
                order.status.value,
                OrderStatus.IN_FACTORY.value,
                reason="order has already been sent to the factory",
            )

        existing = {record.department_name for record in self._store.list_tracking(order_id)}
        missing = [d for d in sequence.DEPARTMENT_ORDER if d not in existing]
        created = self._store.create_tracking_batch(order_id, missing)

        now = self._clock()
        order.sent_to_factory_at = now
        order.current_department = sequence.FIRST_DEPARTMENT
        validator.refresh_order_status(
            order, self._store.list_tracking(order_id), has_submission=False, at=now
        )
        self._store.save_order(order)

        assignment = self._assignments.assign(order_id, sequence.FIRST_DEPARTMENT, actor)

        logger.info(
            "order_sent_to_factory",
            order_id=str(order_id),
            departments_created=len(created),
            first_department_assigned=assignment.assigned,
        )
        return FactoryDispatch(
            order=order,
            departments_created=[record.department_name for record in created],
            first_department_assignment=assignment,
            events=list(assignment.events),
        )

    def start_department(
        self,
        order_id: UUID,
        department: DepartmentName,
        *,
        gold_weight_in: float | None = None,
        estimated_hours: float | None = None,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        """
        Start work on a department.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderNotInFactoryError: If the order is already completed
            PreviousDepartmentNotCompleteError: If an earlier department is open
            AlreadyStartedError: If the department is in progress
            AlreadyCompletedError: If the department is completed
            InvalidStatusTransitionError: If the department is on hold, has no
                worker yet, or another department is in progress
        """
        order = self._load_order(order_id)
        if order.status == OrderStatus.COMPLETED:
            raise OrderNotInFactoryError(order_id, order.status.value)

        records = self._store.list_tracking(order_id)
        if not records:
            records = self._store.create_tracking_batch(order_id, sequence.DEPARTMENT_ORDER)
        by_department = {record.department_name: record for record in records}
        tracking = self._store.get_tracking(order_id, department)
        if tracking is None:
            tracking = self._store.create_tracking_batch(order_id, [department])[0]
        by_department[department] = tracking
        statuses = {name: record.status for name, record in by_department.items()}

        validator.ensure_can_start(department, statuses)
        if tracking.status == DepartmentStatus.IN_PROGRESS:
            raise AlreadyStartedError(order_id, department.value)
        if tracking.status == DepartmentStatus.COMPLETED:
            raise AlreadyCompletedError(order_id, department.value)
        if tracking.status == DepartmentStatus.ON_HOLD:
            raise InvalidStatusTransitionError(
                tracking.status.value,
                DepartmentStatus.IN_PROGRESS.value,
                department.value,
                "resume the department instead",
            )
        if tracking.status == DepartmentStatus.PENDING_ASSIGNMENT:
            raise InvalidStatusTransitionError(
                tracking.status.value,
                DepartmentStatus.IN_PROGRESS.value,
                department.value,
                "a worker must be assigned first",
            )
        validator.ensure_no_other_active(department, statuses)

        now = self._clock()
        previous = tracking.status
        tracking.start(
            started_at=now,
            gold_weight_in=gold_weight_in,
            estimated_hours=estimated_hours,
            notes=notes,
        )
        tracking = self._save(tracking, expected_status=previous)

        order.current_department = department
        by_department[department] = tracking
        validator.refresh_order_status(
            order, by_department.values(), has_submission=False, at=now
        )
        self._store.save_order(order)

        record_transition(department.value, DepartmentStatus.IN_PROGRESS.value)
        logger.info(
            "department_started",
            order_id=str(order_id),
            department=department.value,
            gold_weight_in=tracking.gold_weight_in,
        )
        return TransitionOutcome(
            order=order,
            tracking=tracking,
            events=[notifications.department_started(order, department, actor)],
        )

    def complete_department(
        self,
        order_id: UUID,
        department: DepartmentName,
        *,
        gold_weight_out: float | None = None,
        notes: str | None = None,
        issues: str | None = None,
        actor: Actor | None = None,
    ) -> CompletionOutcome:
        """
        Complete a department and cascade to the next one.

        The next department inherits this department's output weight as its
        input weight and is auto-assigned. Completing the terminal department
        finalizes the order. The freed worker is offered the oldest eligible
        waiting order of this department.

        Raises:
            OrderNotFoundError: If the order does not exist
            TrackingNotFoundError: If the department has no tracking record
            PreviousDepartmentNotCompleteError: If an earlier department is open
            AlreadyCompletedError: If the department is already completed
            NotStartedError: If the department has not been started
            InvalidStatusTransitionError: If the department is on hold
        """
        order = self._load_order(order_id)
        tracking = self._load_tracking(order_id, department)
        by_department = {
            record.department_name: record for record in self._store.list_tracking(order_id)
        }
        by_department[department] = tracking

        validator.ensure_can_start(department, validator.status_map(by_department.values()))
        if tracking.status == DepartmentStatus.COMPLETED:
            raise AlreadyCompletedError(order_id, department.value)
        if tracking.status.is_waiting:
            raise NotStartedError(order_id, department.value, tracking.status.value)
        if tracking.status == DepartmentStatus.ON_HOLD:
            raise InvalidStatusTransitionError(
                tracking.status.value,
                DepartmentStatus.COMPLETED.value,
                department.value,
                "resume the department before completing it",
            )

        now = self._clock()
        freed_worker_id = tracking.assigned_worker_id
        tracking.complete(
            completed_at=now, gold_weight_out=gold_weight_out, notes=notes, issues=issues
        )
        tracking = self._save(tracking, expected_status=DepartmentStatus.IN_PROGRESS)
        record_transition(department.value, DepartmentStatus.COMPLETED.value)
        logger.info(
            "department_completed",
            order_id=str(order_id),
            department=department.value,
            gold_loss=tracking.gold_loss,
        )

        outcome = CompletionOutcome(order=order, tracking=tracking)
        outcome.events.append(
            notifications.department_completed(order, department, actor, tracking.gold_loss)
        )

        following = sequence.next_department(department)
        if following is not None:
            outcome.next_department = following
            outcome.next_assignment = self._advance(
                order, following, by_department.get(following), tracking, actor
            )
            if outcome.next_assignment is not None:
                outcome.events.extend(outcome.next_assignment.events)
        elif self._auto_submit:
            submitted = self._submissions.auto_submit(order, tracking, actor)
            if submitted is not None:
                outcome.submission = submitted.submission
                outcome.events.extend(submitted.events)

        validator.refresh_order_status(
            order,
            self._store.list_tracking(order_id),
            has_submission=self._store.get_final_submission(order_id) is not None,
            at=now,
        )
        self._store.save_order(order)

        if freed_worker_id is not None:
            outcome.queue_assignment = self._assignments.process_waiting_queue(
                department, freed_worker_id, actor
            )
            if outcome.queue_assignment is not None:
                outcome.events.extend(outcome.queue_assignment.events)

        return outcome

    def assign_worker(
        self,
        order_id: UUID,
        department: DepartmentName,
        worker_id: UUID,
        *,
        estimated_hours: float | None = None,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        """
        Manually assign a worker, overriding auto-assignment.

        Creates the tracking record if it does not exist yet. Assigning to an
        active department hands the work over to the new worker.

        Raises:
            OrderNotFoundError: If the order does not exist
            WorkerNotFoundError: If the worker does not exist
            WorkerInactiveError: If the worker is inactive
            AlreadyCompletedError: If the department is completed
        """
        order = self._load_order(order_id)
        worker = self._store.get_worker(worker_id)
        if worker is None:
            raise WorkerNotFoundError(worker_id)
        if not worker.is_active:
            raise WorkerInactiveError(worker_id)

        tracking = self._store.get_tracking(order_id, department)
        if tracking is None:
            tracking = DepartmentTracking(order_id=order_id, department_name=department)
        if tracking.status == DepartmentStatus.COMPLETED:
            raise AlreadyCompletedError(order_id, department.value)

        tracking.assign_worker(worker.id)
        if estimated_hours is not None:
            tracking.estimated_hours = estimated_hours
        if notes is not None:
            tracking.notes = notes
        tracking = self._save(tracking)

        worker.record_assignment(self._clock())
        self._store.save_worker(worker)

        logger.info(
            "worker_assigned",
            order_id=str(order_id),
            department=department.value,
            worker_id=str(worker_id),
        )
        return TransitionOutcome(
            order=order,
            tracking=tracking,
            events=[
                notifications.worker_assigned(
                    order, department, worker, actor, automatic=False
                )
            ],
        )

    def reassign_department(
        self,
        order_id: UUID,
        department: DepartmentName,
        worker_id: UUID,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        """Hand an active department over to another worker."""
        tracking = self._load_tracking(order_id, department)
        if not tracking.status.is_active:
            raise NotStartedError(order_id, department.value, tracking.status.value)
        return self.assign_worker(order_id, department, worker_id, actor=actor)

    def unassign_worker(
        self, order_id: UUID, department: DepartmentName, actor: Actor | None = None
    ) -> TransitionOutcome:
        """
        Remove the assigned worker before work starts.

        Raises:
            InvalidStatusTransitionError: If work on the department has begun
            WorkerNotFoundError: If no worker is assigned
        """
        order = self._load_order(order_id)
        tracking = self._load_tracking(order_id, department)
        if not tracking.status.is_waiting:
            raise InvalidStatusTransitionError(
                tracking.status.value,
                tracking.status.value,
                department.value,
                "workers can only be unassigned before work starts",
            )
        if tracking.assigned_worker_id is None:
            raise WorkerNotFoundError(None, f"department {department.value}")

        previous_worker = tracking.assigned_worker_id
        tracking.unassign_worker()
        tracking = self._save(tracking)
        logger.info(
            "worker_unassigned",
            order_id=str(order_id),
            department=department.value,
            worker_id=str(previous_worker),
        )
        return TransitionOutcome(order=order, tracking=tracking)

    def put_on_hold(
        self,
        order_id: UUID,
        department: DepartmentName,
        reason: str,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        order = self._load_order(order_id)
        tracking = self._load_tracking(order_id, department)
        previous = tracking.status
        tracking.put_on_hold(reason)
        tracking = self._save(tracking, expected_status=previous)

        record_transition(department.value, DepartmentStatus.ON_HOLD.value)
        logger.info(
            "department_on_hold", order_id=str(order_id), department=department.value
        )
        return TransitionOutcome(
            order=order,
            tracking=tracking,
            events=[notifications.department_on_hold(order, department, reason, actor)],
        )

    def resume_department(
        self, order_id: UUID, department: DepartmentName, actor: Actor | None = None
    ) -> TransitionOutcome:
        order = self._load_order(order_id)
        tracking = self._load_tracking(order_id, department)
        if tracking.status != DepartmentStatus.ON_HOLD:
            raise InvalidStatusTransitionError(
                tracking.status.value,
                DepartmentStatus.IN_PROGRESS.value,
                department.value,
                "only a department on hold can be resumed",
            )
        validator.ensure_no_other_active(
            department, validator.status_map(self._store.list_tracking(order_id))
        )
        tracking.resume()
        tracking = self._save(tracking, expected_status=DepartmentStatus.ON_HOLD)

        record_transition(department.value, DepartmentStatus.IN_PROGRESS.value)
        logger.info(
            "department_resumed", order_id=str(order_id), department=department.value
        )
        return TransitionOutcome(order=order, tracking=tracking)

    def move_to_department(
        self, order_id: UUID, target: DepartmentName, actor: Actor | None = None
    ) -> MoveOutcome:
        """
        Administrative override: jump an order to another department.

        Force-completes whichever department is in progress, resets the target
        to a fresh unassigned record and auto-assigns it. Sequence checks are
        bypassed.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderNotInFactoryError: If the order is not in the factory
            AlreadyStartedError: If the target is already the active department
        """
        order = self._load_order(order_id)
        if order.status != OrderStatus.IN_FACTORY:
            raise OrderNotInFactoryError(order_id, order.status.value)

        records = self._store.list_tracking(order_id)
        by_department = {record.department_name: record for record in records}
        active = validator.active_department(validator.status_map(records))
        if active == target:
            raise AlreadyStartedError(order_id, target.value)

        now = self._clock()
        freed_worker_id = None
        if active is not None:
            current = by_department[active]
            freed_worker_id = current.assigned_worker_id
            current.force_complete(now)
            self._save(current)
            record_transition(active.value, DepartmentStatus.COMPLETED.value)

        tracking = by_department.get(target) or DepartmentTracking(
            order_id=order_id, department_name=target
        )
        tracking.reset()
        self._save(tracking)

        order.current_department = target
        self._store.save_order(order)

        assignment = self._assignments.assign(order_id, target, actor)
        tracking = self._load_tracking(order_id, target)

        logger.warning(
            "order_moved",
            order_id=str(order_id),
            from_department=active.value if active else None,
            to_department=target.value,
            assigned=assignment.assigned,
        )
        outcome = MoveOutcome(
            order=order,
            tracking=tracking,
            force_completed=active,
            assignment=assignment,
            events=list(assignment.events),
        )
        if active is not None and freed_worker_id is not None:
            outcome.queue_assignment = self._assignments.process_waiting_queue(
                active, freed_worker_id, actor
            )
            if outcome.queue_assignment is not None:
                outcome.events.extend(outcome.queue_assignment.events)
        return outcome

    def upload_department_photos(
        self,
        order_id: UUID,
        department: DepartmentName,
        photos: list[str],
        notes: str | None = None,
    ) -> DepartmentTracking:
        self._load_order(order_id)
        tracking = self._load_tracking(order_id, department)
        tracking.add_photos(photos, notes)
        return self._save(tracking)

    def update_department_notes(
        self,
        order_id: UUID,
        department: DepartmentName,
        notes: str | None = None,
        issues: str | None = None,
    ) -> DepartmentTracking:
        self._load_order(order_id)
        tracking = self._load_tracking(order_id, department)
        if notes is not None:
            tracking.notes = notes
        if issues is not None:
            tracking.issues = issues
        return self._save(tracking)

    def _advance(
        self,
        order: Order,
        department: DepartmentName,
        existing: DepartmentTracking | None,
        completed: DepartmentTracking,
        actor: Actor | None,
    ) -> AssignmentResult | None:
        """Ensure the next department exists with the carried weight and assign it."""
        carried = completed.gold_weight_out
        if existing is None:
            has_workers = bool(self._store.find_workers_by_department(department))
            patch: dict = {
                "status": DepartmentStatus.NOT_STARTED
                if has_workers
                else DepartmentStatus.PENDING_ASSIGNMENT
            }
            if carried is not None:
                patch["gold_weight_in"] = carried
            existing = self._store.upsert_tracking(order.id, department, patch)
        elif carried is not None and existing.status.is_waiting:
            existing = self._store.upsert_tracking(
                order.id, department, {"gold_weight_in": carried}
            )

        order.current_department = department
        if not existing.status.is_waiting:
            return None
        return self._assignments.assign(order.id, department, actor)

    def _load_order(self, order_id: UUID) -> Order:
        order = self._store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _load_tracking(self, order_id: UUID, department: DepartmentName) -> DepartmentTracking:
        tracking = self._store.get_tracking(order_id, department)
        if tracking is None:
            raise TrackingNotFoundError(order_id, department.value)
        return tracking

    def _save(
        self, tracking: DepartmentTracking, expected_status: DepartmentStatus | None = None
    ) -> DepartmentTracking:
        return self._store.upsert_tracking(
            tracking.order_id,
            tracking.department_name,
            tracking.to_patch(),
            expected_status=expected_status,
        )
