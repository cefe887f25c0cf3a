"""
Base application service providing common functionality.

Runs a unit of work per operation with a single retry on store failure,
builds the domain services bound to that unit of work, and dispatches the
resulting notifications once the transaction has committed.
"""

from abc import ABC
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError

from goldflow.core.config import Settings, get_settings
from goldflow.core.observability import get_logger, record_retry
from goldflow.domain.production.repositories import TrackingStore
from goldflow.domain.production.services import (
    AutoAssignmentService,
    CascadeController,
    FinalSubmissionService,
    WorkerWorkService,
)
from goldflow.domain.production.value_objects.enums import DepartmentName
from goldflow.domain.shared.base import utc_now
from goldflow.domain.shared.exceptions import InfrastructureError, ValidationError
from goldflow.infrastructure.database import DatabaseError, UnitOfWorkManager
from goldflow.infrastructure.events import NotificationDispatcher, build_dispatcher

logger = get_logger(__name__)

T = TypeVar("T")


class ApplicationServiceBase(ABC):
    """
    Base class for application services.

    Provides validation helpers, transaction coordination and notification
    dispatch shared by all application services.
    """

    def __init__(
        self,
        uow_manager: UnitOfWorkManager,
        dispatcher: NotificationDispatcher | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the application service.

        Args:
            uow_manager: Creates the unit of work for each operation
            dispatcher: Delivers notifications after commit; defaults to the
                configured history and log sinks
            settings: Workflow tuning; defaults to the process settings
            clock: Time source for timestamps
        """
        self._uow_manager = uow_manager
        self._settings = settings or get_settings()
        self._dispatcher = dispatcher or build_dispatcher(self._settings)
        self._clock = clock

    def _assignment_service(self, store: TrackingStore) -> AutoAssignmentService:
        return AutoAssignmentService(store, self._settings.MAX_WORKER_WORKLOAD, self._clock)

    def _submission_service(self, store: TrackingStore) -> FinalSubmissionService:
        return FinalSubmissionService(
            store,
            self._settings.WEIGHT_VARIANCE_ALERT_THRESHOLD,
            self._settings.DEFAULT_PURITY,
            self._clock,
        )

    def _controller(self, store: TrackingStore) -> CascadeController:
        return CascadeController(
            store,
            self._assignment_service(store),
            self._submission_service(store),
            auto_submit=self._settings.AUTO_SUBMIT_ON_COMPLETION,
            clock=self._clock,
        )

    def _work_service(self, store: TrackingStore) -> WorkerWorkService:
        return WorkerWorkService(store, self._controller(store), self._clock)

    def _run(self, operation: str, work: Callable[[TrackingStore], T]) -> T:
        """
        Execute work inside one transaction.

        Store failures are retried once; a second failure surfaces as
        InfrastructureError. Domain errors roll back and propagate untouched.
        Events carried by the result are dispatched after commit.
        """
        attempts = self._settings.TRANSACTION_RETRY_ATTEMPTS + 1
        with structlog.contextvars.bound_contextvars(operation=operation):
            for attempt in range(1, attempts + 1):
                try:
                    with self._uow_manager.transaction() as uow:
                        result = work(uow.store)
                    break
                except (DatabaseError, SQLAlchemyError) as e:
                    if attempt >= attempts:
                        logger.error("transaction_failed", attempts=attempt, error=str(e))
                        raise InfrastructureError(operation, str(e)) from e
                    record_retry(operation)
                    logger.warning("transaction_retry", attempt=attempt, error=str(e))

        events = getattr(result, "events", None)
        if events:
            self._dispatcher.dispatch(events)
        return result

    @staticmethod
    def parse_department(department: str | DepartmentName) -> DepartmentName:
        return DepartmentName.parse(department)

    @staticmethod
    def validate_non_empty_string(value: str | None, field_name: str) -> str:
        """
        Validate that a string field is not empty.

        Raises:
            ValidationError: If string is None or blank
        """
        if not value or not value.strip():
            raise ValidationError(field_name, value, "cannot be empty")
        return value.strip()
