"""Tracking store contract consumed by the workflow engine."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from ..entities.order import Order
from ..entities.submission import FinalSubmission
from ..entities.tracking import DepartmentTracking
from ..entities.work_data import DepartmentWorkData
from ..entities.worker import Worker, WorkerWorkload
from ..value_objects.enums import DepartmentName, DepartmentStatus, OrderStatus


class TrackingStore(ABC):
    """
    Transactional access to orders, workers, tracking records and submissions.

    One store instance is bound to one transaction; the unit of work that
    creates it decides when changes are committed or rolled back.
    """

    # Tracking records

    @abstractmethod
    def get_tracking(
        self, order_id: UUID, department: DepartmentName
    ) -> DepartmentTracking | None:
        """Fetch one record, locking it for the rest of the transaction."""

    @abstractmethod
    def list_tracking(self, order_id: UUID) -> list[DepartmentTracking]:
        """All records of an order in production sequence."""

    @abstractmethod
    def upsert_tracking(
        self,
        order_id: UUID,
        department: DepartmentName,
        patch: dict[str, Any],
        expected_status: DepartmentStatus | None = None,
    ) -> DepartmentTracking:
        """
        Create or update the (order, department) record with the given fields.

        With `expected_status`, the write only applies while the stored record
        still has that status; otherwise TrackingConflictError is raised.
        """

    @abstractmethod
    def create_tracking_batch(
        self,
        order_id: UUID,
        departments: Iterable[DepartmentName],
        status: DepartmentStatus = DepartmentStatus.NOT_STARTED,
    ) -> list[DepartmentTracking]:
        """Create records for the departments that do not have one yet."""

    @abstractmethod
    def find_waiting_tracking(self, department: DepartmentName) -> list[DepartmentTracking]:
        """Unassigned waiting records of a department, oldest first."""

    @abstractmethod
    def count_worker_tracking(
        self, worker_id: UUID, statuses: Iterable[DepartmentStatus]
    ) -> int:
        pass

    # Orders

    @abstractmethod
    def get_order(self, order_id: UUID) -> Order | None:
        pass

    @abstractmethod
    def create_order(self, order: Order) -> Order:
        pass

    @abstractmethod
    def save_order(self, order: Order) -> Order:
        pass

    @abstractmethod
    def update_order_status(self, order_id: UUID, status: OrderStatus) -> Order:
        pass

    @abstractmethod
    def list_orders(self, status: OrderStatus | None = None) -> list[Order]:
        pass

    # Workers

    @abstractmethod
    def find_workers_by_department(
        self, department: DepartmentName, active_only: bool = True
    ) -> list[WorkerWorkload]:
        """Workers with their IN_PROGRESS workload, locked against concurrent assignment."""

    @abstractmethod
    def get_worker(self, worker_id: UUID) -> Worker | None:
        pass

    @abstractmethod
    def create_worker(self, worker: Worker) -> Worker:
        pass

    @abstractmethod
    def save_worker(self, worker: Worker) -> Worker:
        pass

    # Worker work data

    @abstractmethod
    def get_work_data(
        self, order_id: UUID, department: DepartmentName
    ) -> DepartmentWorkData | None:
        pass

    @abstractmethod
    def save_work_data(self, work_data: DepartmentWorkData) -> DepartmentWorkData:
        """Insert or replace the record for the work data's (order, department)."""

    # Final submissions

    @abstractmethod
    def create_final_submission(
        self, order_id: UUID, submission: FinalSubmission
    ) -> FinalSubmission:
        pass

    @abstractmethod
    def get_final_submission(self, order_id: UUID) -> FinalSubmission | None:
        pass

    @abstractmethod
    def update_final_submission(self, submission: FinalSubmission) -> FinalSubmission:
        pass

    @abstractmethod
    def list_final_submissions(self) -> list[FinalSubmission]:
        pass
