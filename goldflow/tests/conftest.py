from collections.abc import Callable, Generator
from datetime import datetime, timedelta

import pytest

from goldflow.application.queries import ProductionQueries
from goldflow.application.services import (
    DepartmentWorkflowService,
    SubmissionApplicationService,
)
from goldflow.core.config import Settings
from goldflow.domain.production.entities import Order, Worker
from goldflow.domain.production.repositories import TrackingStore
from goldflow.domain.production.value_objects.enums import DepartmentName
from goldflow.infrastructure.database import UnitOfWorkManager, create_db_engine, init_db
from goldflow.infrastructure.events import (
    InMemoryNotificationHistory,
    NotificationDispatcher,
)
from goldflow.tests.factories import OrderFactory, WorkerFactory


class FakeClock:
    """Deterministic time source that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, hours: float = 0, minutes: float = 0) -> datetime:
        self.now += timedelta(hours=hours, minutes=minutes)
        return self.now


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        LOG_FORMAT="console",
        ENABLE_METRICS=False,
        REDIS_URL=None,
        MAX_WORKER_WORKLOAD=5,
        WEIGHT_VARIANCE_ALERT_THRESHOLD=5.0,
    )


@pytest.fixture
def uow_manager(test_settings: Settings) -> Generator[UnitOfWorkManager, None, None]:
    """Fresh in-memory database per test."""
    engine = create_db_engine("sqlite://", test_settings)
    init_db(engine)
    yield UnitOfWorkManager(engine)
    engine.dispose()


@pytest.fixture
def store(uow_manager: UnitOfWorkManager) -> Generator[TrackingStore, None, None]:
    """A tracking store bound to one open transaction."""
    with uow_manager.transaction() as uow:
        yield uow.store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def history() -> InMemoryNotificationHistory:
    return InMemoryNotificationHistory(max_size=100)


@pytest.fixture
def dispatcher(history: InMemoryNotificationHistory) -> NotificationDispatcher:
    return NotificationDispatcher([history])


@pytest.fixture
def workflow(uow_manager, dispatcher, test_settings, clock) -> DepartmentWorkflowService:
    return DepartmentWorkflowService(uow_manager, dispatcher, test_settings, clock)


@pytest.fixture
def submissions(uow_manager, dispatcher, test_settings, clock) -> SubmissionApplicationService:
    return SubmissionApplicationService(uow_manager, dispatcher, test_settings, clock)


@pytest.fixture
def queries(uow_manager, dispatcher, test_settings, clock) -> ProductionQueries:
    return ProductionQueries(uow_manager, dispatcher, test_settings, clock)


@pytest.fixture
def add_order(uow_manager: UnitOfWorkManager) -> Callable[..., Order]:
    """Persist an order in its own transaction."""

    def _add(**kwargs) -> Order:
        with uow_manager.transaction() as uow:
            return uow.store.create_order(OrderFactory.create(**kwargs))

    return _add


@pytest.fixture
def add_worker(uow_manager: UnitOfWorkManager) -> Callable[..., Worker]:
    """Persist a worker in its own transaction."""

    def _add(department: DepartmentName = DepartmentName.CAD, **kwargs) -> Worker:
        with uow_manager.transaction() as uow:
            return uow.store.create_worker(WorkerFactory.create(department, **kwargs))

    return _add


@pytest.fixture
def read(uow_manager: UnitOfWorkManager) -> Callable:
    """Run a read against the store in a fresh transaction."""

    def _read(work: Callable[[TrackingStore], object]):
        with uow_manager.transaction() as uow:
            return work(uow.store)

    return _read
