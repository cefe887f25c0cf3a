"""
SQL-backed tracking store.

Implements the TrackingStore contract on a single SQLModel session owned by
the unit of work. Reads that feed validation or workload counting lock the
rows they return (SELECT ... FOR UPDATE) where the database supports it.
"""

import logging
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from goldflow.domain.production.entities import (
    DepartmentTracking,
    DepartmentWorkData,
    FinalSubmission,
    Order,
    Worker,
    WorkerWorkload,
)
from goldflow.domain.production.repositories import TrackingStore
from goldflow.domain.production.value_objects import sequence
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
)
from goldflow.domain.shared.base import utc_now
from goldflow.domain.shared.exceptions import OrderNotFoundError, TrackingConflictError

from . import mappers
from .errors import DatabaseError
from .models import (
    DepartmentTrackingModel,
    DepartmentWorkDataModel,
    FinalSubmissionModel,
    OrderModel,
    WorkerModel,
)

logger = logging.getLogger(__name__)

_TRACKING_COLUMNS = frozenset(DepartmentTrackingModel.model_fields) - {
    "id",
    "created_at",
    "order_id",
    "department_name",
}


def _sequence_key(record: DepartmentTracking) -> int:
    return sequence.index_of(record.department_name)


class SqlTrackingStore(TrackingStore):
    """TrackingStore implementation over SQLModel/SQLAlchemy."""

    def __init__(self, session: Session):
        self.session = session

    # Tracking records

    def get_tracking(
        self, order_id: UUID, department: DepartmentName
    ) -> DepartmentTracking | None:
        row = self._tracking_row(order_id, department, lock=True)
        return mappers.tracking_to_domain(row) if row else None

    def list_tracking(self, order_id: UUID) -> list[DepartmentTracking]:
        try:
            statement = select(DepartmentTrackingModel).where(
                DepartmentTrackingModel.order_id == order_id
            )
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error listing tracking for order {order_id}: {e}") from e
        return sorted((mappers.tracking_to_domain(row) for row in rows), key=_sequence_key)

    def upsert_tracking(
        self,
        order_id: UUID,
        department: DepartmentName,
        patch: dict[str, Any],
        expected_status: DepartmentStatus | None = None,
    ) -> DepartmentTracking:
        unknown = set(patch) - _TRACKING_COLUMNS
        if unknown:
            raise ValueError(f"Unknown tracking fields: {sorted(unknown)}")
        if expected_status is not None:
            self._claim_tracking(order_id, department, expected_status)

        try:
            row = self._tracking_row(order_id, department, lock=True)
            if row is None:
                row = DepartmentTrackingModel(order_id=order_id, department_name=department)
            else:
                row.updated_at = utc_now()
            for name, value in patch.items():
                setattr(row, name, list(value) if name == "photos" else value)
            self.session.add(row)
            self.session.flush()
            self.session.refresh(row)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error saving tracking {department.value} for order {order_id}: {e}"
            ) from e
        return mappers.tracking_to_domain(row)

    def create_tracking_batch(
        self,
        order_id: UUID,
        departments: Iterable[DepartmentName],
        status: DepartmentStatus = DepartmentStatus.NOT_STARTED,
    ) -> list[DepartmentTracking]:
        try:
            existing = set(
                self.session.exec(
                    select(DepartmentTrackingModel.department_name).where(
                        DepartmentTrackingModel.order_id == order_id
                    )
                ).all()
            )
            rows = [
                DepartmentTrackingModel(
                    order_id=order_id, department_name=department, status=status
                )
                for department in departments
                if department not in existing
            ]
            self.session.add_all(rows)
            self.session.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error creating tracking for order {order_id}: {e}") from e
        logger.debug(f"Created {len(rows)} tracking records for order {order_id}")
        return sorted((mappers.tracking_to_domain(row) for row in rows), key=_sequence_key)

    def find_waiting_tracking(self, department: DepartmentName) -> list[DepartmentTracking]:
        try:
            statement = (
                select(DepartmentTrackingModel)
                .where(
                    DepartmentTrackingModel.department_name == department,
                    col(DepartmentTrackingModel.status).in_(
                        [DepartmentStatus.NOT_STARTED, DepartmentStatus.PENDING_ASSIGNMENT]
                    ),
                    col(DepartmentTrackingModel.assigned_worker_id).is_(None),
                )
                .order_by(
                    col(DepartmentTrackingModel.created_at).asc(),
                    col(DepartmentTrackingModel.id).asc(),
                )
            )
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading queue for {department.value}: {e}") from e
        return [mappers.tracking_to_domain(row) for row in rows]

    def count_worker_tracking(
        self, worker_id: UUID, statuses: Iterable[DepartmentStatus]
    ) -> int:
        try:
            statement = select(func.count(DepartmentTrackingModel.id)).where(
                DepartmentTrackingModel.assigned_worker_id == worker_id,
                col(DepartmentTrackingModel.status).in_(list(statuses)),
            )
            return int(self.session.exec(statement).one())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error counting work for worker {worker_id}: {e}") from e

    # Orders

    def get_order(self, order_id: UUID) -> Order | None:
        row = self._get(OrderModel, order_id)
        return mappers.order_to_domain(row) if row else None

    def create_order(self, order: Order) -> Order:
        return mappers.order_to_domain(self._add(mappers.order_to_row(order)))

    def save_order(self, order: Order) -> Order:
        row = self._get(OrderModel, order.id)
        if row is None:
            raise OrderNotFoundError(order.id)
        return mappers.order_to_domain(self._add(mappers.order_to_row(order, row)))

    def update_order_status(self, order_id: UUID, status: OrderStatus) -> Order:
        row = self._get(OrderModel, order_id)
        if row is None:
            raise OrderNotFoundError(order_id)
        row.status = status
        row.updated_at = utc_now()
        return mappers.order_to_domain(self._add(row))

    def list_orders(self, status: OrderStatus | None = None) -> list[Order]:
        try:
            statement = select(OrderModel).order_by(col(OrderModel.created_at).asc())
            if status is not None:
                statement = statement.where(OrderModel.status == status)
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error listing orders: {e}") from e
        return [mappers.order_to_domain(row) for row in rows]

    # Workers

    def find_workers_by_department(
        self, department: DepartmentName, active_only: bool = True
    ) -> list[WorkerWorkload]:
        workload = (
            select(func.count(DepartmentTrackingModel.id))
            .where(
                DepartmentTrackingModel.assigned_worker_id == WorkerModel.id,
                DepartmentTrackingModel.status == DepartmentStatus.IN_PROGRESS,
            )
            .correlate(WorkerModel)
            .scalar_subquery()
        )
        try:
            statement = (
                select(WorkerModel, workload)
                .where(WorkerModel.department == department)
                .with_for_update(of=WorkerModel)
            )
            if active_only:
                statement = statement.where(col(WorkerModel.is_active).is_(True))
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading workers for {department.value}: {e}") from e
        return [
            WorkerWorkload(worker=mappers.worker_to_domain(row), workload=int(count or 0))
            for row, count in rows
        ]

    def get_worker(self, worker_id: UUID) -> Worker | None:
        row = self._get(WorkerModel, worker_id, lock=True)
        return mappers.worker_to_domain(row) if row else None

    def create_worker(self, worker: Worker) -> Worker:
        return mappers.worker_to_domain(self._add(mappers.worker_to_row(worker)))

    def save_worker(self, worker: Worker) -> Worker:
        row = self._get(WorkerModel, worker.id)
        return mappers.worker_to_domain(self._add(mappers.worker_to_row(worker, row)))

    # Worker work data

    def get_work_data(
        self, order_id: UUID, department: DepartmentName
    ) -> DepartmentWorkData | None:
        row = self._work_data_row(order_id, department)
        return mappers.work_data_to_domain(row) if row else None

    def save_work_data(self, work_data: DepartmentWorkData) -> DepartmentWorkData:
        row = self._work_data_row(work_data.order_id, work_data.department_name)
        if row is not None:
            work_data = work_data.model_copy(
                update={"id": row.id, "created_at": row.created_at, "updated_at": utc_now()}
            )
        return mappers.work_data_to_domain(self._add(mappers.work_data_to_row(work_data, row)))

    # Final submissions

    def create_final_submission(
        self, order_id: UUID, submission: FinalSubmission
    ) -> FinalSubmission:
        row = mappers.submission_to_row(submission)
        row.order_id = order_id
        return mappers.submission_to_domain(self._add(row))

    def get_final_submission(self, order_id: UUID) -> FinalSubmission | None:
        row = self._submission_row(order_id)
        return mappers.submission_to_domain(row) if row else None

    def update_final_submission(self, submission: FinalSubmission) -> FinalSubmission:
        row = self._submission_row(submission.order_id)
        return mappers.submission_to_domain(
            self._add(mappers.submission_to_row(submission, row))
        )

    def list_final_submissions(self) -> list[FinalSubmission]:
        try:
            statement = select(FinalSubmissionModel).order_by(
                col(FinalSubmissionModel.submitted_at).desc()
            )
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error listing final submissions: {e}") from e
        return [mappers.submission_to_domain(row) for row in rows]

    # Helpers

    def _get(self, model: type, entity_id: UUID, lock: bool = False) -> Any:
        try:
            return self.session.get(model, entity_id, with_for_update=lock)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading {model.__name__} {entity_id}: {e}") from e

    def _add(self, row: Any) -> Any:
        try:
            self.session.add(row)
            self.session.flush()
            self.session.refresh(row)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error saving {type(row).__name__}: {e}") from e
        return row

    def _tracking_row(
        self, order_id: UUID, department: DepartmentName, lock: bool = False
    ) -> DepartmentTrackingModel | None:
        statement = select(DepartmentTrackingModel).where(
            DepartmentTrackingModel.order_id == order_id,
            DepartmentTrackingModel.department_name == department,
        )
        if lock:
            statement = statement.with_for_update().execution_options(populate_existing=True)
        try:
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error loading tracking {department.value} for order {order_id}: {e}"
            ) from e

    def _claim_tracking(
        self, order_id: UUID, department: DepartmentName, expected_status: DepartmentStatus
    ) -> None:
        """Touch the row only while it still holds `expected_status`; otherwise conflict."""
        table = DepartmentTrackingModel.__table__
        statement = (
            update(table)
            .where(
                table.c.order_id == order_id,
                table.c.department_name == department,
                table.c.status == expected_status,
            )
            .values(updated_at=utc_now())
        )
        try:
            result = self.session.connection().execute(statement)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error claiming tracking {department.value} for order {order_id}: {e}"
            ) from e
        if result.rowcount == 0:
            logger.warning(
                f"Tracking {department.value} for order {order_id} "
                f"changed from {expected_status.value} concurrently"
            )
            raise TrackingConflictError(order_id, department.value, expected_status.value)

    def _work_data_row(
        self, order_id: UUID, department: DepartmentName
    ) -> DepartmentWorkDataModel | None:
        try:
            statement = select(DepartmentWorkDataModel).where(
                DepartmentWorkDataModel.order_id == order_id,
                DepartmentWorkDataModel.department_name == department,
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error loading work data {department.value} for order {order_id}: {e}"
            ) from e

    def _submission_row(self, order_id: UUID) -> FinalSubmissionModel | None:
        try:
            statement = select(FinalSubmissionModel).where(
                FinalSubmissionModel.order_id == order_id
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading submission for order {order_id}: {e}") from e
