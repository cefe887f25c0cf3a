"""
Unit tests for WorkerWorkService.

Runs against the SQL tracking store so drafts and completions are persisted
through the real work-data table.
"""

import pytest

from goldflow.domain.production.services import CascadeController, WorkerWorkService
from goldflow.domain.production.value_objects import sequence
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    NotificationType,
)
from goldflow.domain.shared.exceptions import (
    AlreadyCompletedError,
    NotStartedError,
    OrderNotFoundError,
    PreviousDepartmentNotCompleteError,
    WorkNotAssignedError,
)
from goldflow.tests.factories import OrderFactory, WorkerFactory

D = DepartmentName
S = DepartmentStatus


@pytest.fixture
def controller(store, clock):
    return CascadeController(store, clock=clock)


@pytest.fixture
def service(store, controller, clock):
    return WorkerWorkService(store, controller, clock)


def order_with_assignment(store, department=D.CAD, status=S.NOT_STARTED):
    """An in-factory order whose `department` is assigned to a fresh worker."""
    worker = store.create_worker(WorkerFactory.create(department))
    order = store.create_order(OrderFactory.create_in_factory())
    store.create_tracking_batch(order.id, sequence.DEPARTMENT_ORDER)
    for earlier in sequence.preceding_departments(department):
        store.upsert_tracking(order.id, earlier, {"status": S.COMPLETED})
    store.upsert_tracking(
        order.id, department, {"status": status, "assigned_worker_id": worker.id}
    )
    return order, worker


class TestGetWorkData:
    def test_nothing_saved_yet(self, store, service):
        order, worker = order_with_assignment(store)

        view = service.get_work_data(order.id, worker.id)

        assert view.order.id == order.id
        assert view.tracking.department_name == D.CAD
        assert view.work_data is None

    def test_other_worker_is_refused(self, store, service):
        order, _ = order_with_assignment(store)
        stranger = store.create_worker(WorkerFactory.create(D.CAD))

        with pytest.raises(WorkNotAssignedError) as exc_info:
            service.get_work_data(order.id, stranger.id)
        assert exc_info.value.details["worker_id"] == str(stranger.id)

    def test_unknown_order(self, store, service):
        worker = store.create_worker(WorkerFactory.create(D.CAD))
        with pytest.raises(OrderNotFoundError):
            service.get_work_data(OrderFactory.create().id, worker.id)


class TestSaveWorkProgress:
    def test_first_save_starts_the_department(self, store, service, clock):
        order, worker = order_with_assignment(store)

        outcome = service.save_work_progress(
            order.id, worker.id, {"stones": 12}, ["/files/a.stl"], ["/photos/a.jpg"]
        )

        assert outcome.tracking.status == S.IN_PROGRESS
        assert outcome.tracking.started_at == clock.now
        assert [e.type for e in outcome.events] == [NotificationType.DEPARTMENT_STARTED]
        assert outcome.work_data.is_draft
        assert outcome.work_data.last_saved_at == clock.now
        stored = store.get_work_data(order.id, D.CAD)
        assert stored.form_data == {"stones": 12}
        assert stored.uploaded_photos == ["/photos/a.jpg"]

    def test_later_saves_replace_the_draft(self, store, service, clock):
        order, worker = order_with_assignment(store, status=S.IN_PROGRESS)
        first = service.save_work_progress(order.id, worker.id, {"stones": 12})
        clock.advance(minutes=30)

        second = service.save_work_progress(order.id, worker.id, {"stones": 14})

        assert second.work_data.id == first.work_data.id
        assert second.events == []
        assert second.work_data.form_data == {"stones": 14}
        assert second.work_data.last_saved_at == clock.now
        assert second.work_data.work_started_at == first.work_data.work_started_at

    def test_start_still_follows_the_sequence(self, store, service):
        order, worker = order_with_assignment(store, department=D.PRINT)
        store.upsert_tracking(order.id, D.CAD, {"status": S.IN_PROGRESS})

        with pytest.raises(PreviousDepartmentNotCompleteError):
            service.save_work_progress(order.id, worker.id, {"layers": 300})
        assert store.get_work_data(order.id, D.PRINT) is None

    def test_completed_work_cannot_be_redrafted(self, store, service):
        order, worker = order_with_assignment(store, status=S.COMPLETED)
        with pytest.raises(AlreadyCompletedError):
            service.save_work_progress(order.id, worker.id, {"stones": 1})


class TestCompleteWork:
    def test_completion_records_time_and_cascades(self, store, service, clock):
        order, worker = order_with_assignment(store)
        service.start_work(order.id, worker.id)
        clock.advance(hours=3, minutes=45)

        done = service.complete_work(
            order.id, worker.id, {"design": "final"}, ["/files/final.stl"], gold_weight_out=9.9
        )

        assert done.work_data.is_complete
        assert not done.work_data.is_draft
        assert done.work_data.time_spent_hours == 3.75
        assert done.work_data.work_completed_at == clock.now
        assert done.tracking.status == S.COMPLETED
        assert done.completion.next_department == D.PRINT
        assert store.get_tracking(order.id, D.PRINT).gold_weight_in == 9.9
        assert NotificationType.DEPARTMENT_COMPLETED in [e.type for e in done.events]

    def test_department_must_be_started(self, store, service):
        order, worker = order_with_assignment(store)
        with pytest.raises(NotStartedError):
            service.complete_work(order.id, worker.id)
        assert store.get_work_data(order.id, D.CAD) is None

    def test_only_the_assigned_worker_may_complete(self, store, service):
        order, _ = order_with_assignment(store, status=S.IN_PROGRESS)
        stranger = store.create_worker(WorkerFactory.create(D.CAD))

        with pytest.raises(WorkNotAssignedError):
            service.complete_work(order.id, stranger.id)
        assert store.get_tracking(order.id, D.CAD).status == S.IN_PROGRESS

    def test_second_completion_rejected(self, store, service):
        order, worker = order_with_assignment(store, status=S.IN_PROGRESS)
        service.complete_work(order.id, worker.id)

        with pytest.raises(AlreadyCompletedError):
            service.complete_work(order.id, worker.id)
