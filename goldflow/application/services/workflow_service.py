"""
Department workflow application service.

Public entry point for moving orders through the factory. Each call is one
atomic transaction; notifications go out after commit.
"""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from goldflow.core.observability import get_logger
from goldflow.domain.production.events import Actor
from goldflow.domain.production.services import (
    AssignmentResult,
    CompletionOutcome,
    FactoryDispatch,
    MoveOutcome,
    TransitionOutcome,
    WorkCompletion,
    WorkOutcome,
)
from goldflow.domain.production.value_objects.enums import DepartmentName
from goldflow.domain.shared.exceptions import DomainError, InfrastructureError

from ..dtos.workflow_dtos import (
    AssignWorkerInput,
    BulkSendItem,
    BulkSendResult,
    CompleteDepartmentInput,
    CompleteWorkInput,
    PhotoUploadInput,
    StartDepartmentInput,
    TrackingResponse,
    WorkDataResponse,
    WorkProgressInput,
    WorkViewResponse,
)
from .base_service import ApplicationServiceBase

logger = get_logger(__name__)


class DepartmentWorkflowService(ApplicationServiceBase):
    """
    Application service for department workflow operations.

    Wraps the cascade controller and auto-assignment service in
    transactions and publishes their notifications.
    """

    def send_to_factory(self, order_id: UUID, actor: Actor | None = None) -> FactoryDispatch:
        return self._run(
            "send_to_factory",
            lambda store: self._controller(store).send_to_factory(order_id, actor),
        )

    def bulk_send_to_factory(
        self, order_ids: Iterable[UUID], actor: Actor | None = None
    ) -> BulkSendResult:
        """Send each order in its own transaction and report per-order outcomes."""
        results: list[BulkSendItem] = []
        for order_id in order_ids:
            try:
                dispatch = self.send_to_factory(order_id, actor)
            except (DomainError, InfrastructureError) as e:
                results.append(BulkSendItem(order_id=order_id, success=False, error=e.to_dict()))
                continue
            results.append(
                BulkSendItem(
                    order_id=order_id,
                    success=True,
                    departments_created=len(dispatch.departments_created),
                    first_department_assigned=dispatch.first_department_assignment.assigned,
                )
            )

        success_count = sum(1 for item in results if item.success)
        logger.info(
            "bulk_send_to_factory",
            total=len(results),
            success_count=success_count,
            failed_count=len(results) - success_count,
        )
        return BulkSendResult(
            results=results,
            success_count=success_count,
            failed_count=len(results) - success_count,
        )

    def start_department(
        self,
        order_id: UUID,
        department: str | DepartmentName,
        data: StartDepartmentInput | None = None,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        name = self.parse_department(department)
        data = data or StartDepartmentInput()
        return self._run(
            "start_department",
            lambda store: self._controller(store).start_department(
                order_id,
                name,
                gold_weight_in=data.gold_weight_in,
                estimated_hours=data.estimated_hours,
                notes=data.notes,
                actor=actor,
            ),
        )

    def complete_department(
        self,
        order_id: UUID,
        department: str | DepartmentName,
        data: CompleteDepartmentInput | None = None,
        actor: Actor | None = None,
    ) -> CompletionOutcome:
        name = self.parse_department(department)
        data = data or CompleteDepartmentInput()
        return self._run(
            "complete_department",
            lambda store: self._controller(store).complete_department(
                order_id,
                name,
                gold_weight_out=data.gold_weight_out,
                notes=data.notes,
                issues=data.issues,
                actor=actor,
            ),
        )

    def assign_worker(
        self,
        order_id: UUID,
        department: str | DepartmentName,
        data: AssignWorkerInput,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        name = self.parse_department(department)
        return self._run(
            "assign_worker",
            lambda store: self._controller(store).assign_worker(
                order_id,
                name,
                data.worker_id,
                estimated_hours=data.estimated_hours,
                notes=data.notes,
                actor=actor,
            ),
        )

    def reassign_department(
        self,
        order_id: UUID,
        department: str | DepartmentName,
        worker_id: UUID,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        name = self.parse_department(department)
        return self._run(
            "reassign_department",
            lambda store: self._controller(store).reassign_department(
                order_id, name, worker_id, actor
            ),
        )

    def unassign_worker(
        self, order_id: UUID, department: str | DepartmentName, actor: Actor | None = None
    ) -> TransitionOutcome:
        name = self.parse_department(department)
        return self._run(
            "unassign_worker",
            lambda store: self._controller(store).unassign_worker(order_id, name, actor),
        )

    def put_on_hold(
        self,
        order_id: UUID,
        department: str | DepartmentName,
        reason: str,
        actor: Actor | None = None,
    ) -> TransitionOutcome:
        name = self.parse_department(department)
        reason = self.validate_non_empty_string(reason, "reason")
        return self._run(
            "put_on_hold",
            lambda store: self._controller(store).put_on_hold(order_id, name, reason, actor),
        )

    def resume_department(
        self, order_id: UUID, department: str | DepartmentName, actor: Actor | None = None
    ) -> TransitionOutcome:
        name = self.parse_department(department)
        return self._run(
            "resume_department",
            lambda store: self._controller(store).resume_department(order_id, name, actor),
        )

    def move_to_department(
        self, order_id: UUID, target: str | DepartmentName, actor: Actor | None = None
    ) -> MoveOutcome:
        name = self.parse_department(target)
        return self._run(
            "move_to_department",
            lambda store: self._controller(store).move_to_department(order_id, name, actor),
        )

    def auto_assign(
        self, order_id: UUID, department: str | DepartmentName, actor: Actor | None = None
    ) -> AssignmentResult:
        name = self.parse_department(department)
        return self._run(
            "auto_assign",
            lambda store: self._assignment_service(store).assign(order_id, name, actor),
        )

    def process_waiting_queue(
        self, department: str | DepartmentName, worker_id: UUID, actor: Actor | None = None
    ) -> AssignmentResult | None:
        name = self.parse_department(department)
        return self._run(
            "process_waiting_queue",
            lambda store: self._assignment_service(store).process_waiting_queue(
                name, worker_id, actor
            ),
        )

    def upload_department_photos(
        self, order_id: UUID, department: str | DepartmentName, data: PhotoUploadInput
    ) -> TrackingResponse:
        name = self.parse_department(department)
        tracking = self._run(
            "upload_department_photos",
            lambda store: self._controller(store).upload_department_photos(
                order_id, name, data.photos, data.notes
            ),
        )
        return TrackingResponse.from_entity(tracking)

    def update_department_notes(
        self,
        order_id: UUID,
        department: str | DepartmentName,
        notes: str | None = None,
        issues: str | None = None,
    ) -> TrackingResponse:
        name = self.parse_department(department)
        tracking = self._run(
            "update_department_notes",
            lambda store: self._controller(store).update_department_notes(
                order_id, name, notes, issues
            ),
        )
        return TrackingResponse.from_entity(tracking)

    def get_work_data(self, order_id: UUID, worker_id: UUID) -> WorkViewResponse:
        view = self._run(
            "get_work_data",
            lambda store: self._work_service(store).get_work_data(order_id, worker_id),
        )
        return WorkViewResponse(
            order_id=view.order.id,
            order_number=view.order.order_number,
            order_status=view.order.status,
            tracking=TrackingResponse.from_entity(view.tracking),
            work_data=WorkDataResponse.from_entity(view.work_data) if view.work_data else None,
        )

    def start_work(
        self, order_id: UUID, worker_id: UUID, actor: Actor | None = None
    ) -> WorkOutcome:
        return self._run(
            "start_work",
            lambda store: self._work_service(store).start_work(order_id, worker_id, actor),
        )

    def save_work_progress(
        self,
        order_id: UUID,
        worker_id: UUID,
        data: WorkProgressInput,
        actor: Actor | None = None,
    ) -> WorkOutcome:
        return self._run(
            "save_work_progress",
            lambda store: self._work_service(store).save_work_progress(
                order_id,
                worker_id,
                data.form_data,
                data.uploaded_files,
                data.uploaded_photos,
                actor,
            ),
        )

    def complete_work(
        self,
        order_id: UUID,
        worker_id: UUID,
        data: CompleteWorkInput,
        actor: Actor | None = None,
    ) -> WorkCompletion:
        return self._run(
            "complete_work",
            lambda store: self._work_service(store).complete_work(
                order_id,
                worker_id,
                data.form_data,
                data.uploaded_files,
                data.uploaded_photos,
                gold_weight_out=data.gold_weight_out,
                notes=data.notes,
                actor=actor,
            ),
        )

    def recent_notifications(
        self, limit: int = 20, order_id: UUID | None = None
    ) -> list[dict[str, Any]]:
        history = self._dispatcher.history()
        if history is None:
            return []
        return history.recent(limit, order_id)
