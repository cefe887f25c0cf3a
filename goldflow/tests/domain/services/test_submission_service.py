"""Unit tests for FinalSubmissionService."""

import pytest

from goldflow.domain.production.events import Actor
from goldflow.domain.production.services import FinalSubmissionService
from goldflow.domain.production.value_objects import sequence
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    NotificationType,
    OrderStatus,
    QualityGrade,
)
from goldflow.domain.shared.exceptions import (
    DepartmentsIncompleteError,
    HighVarianceUnacknowledgedError,
    OrderAlreadySubmittedError,
    OrderNotFoundError,
    OrderNotInFactoryError,
    SubmissionNotFoundError,
)
from goldflow.tests.factories import OrderFactory

PHOTOS = ["https://cdn.example.com/final-front.jpg"]
QC = Actor(id="qc-1", name="QC Lead")


@pytest.fixture
def service(store, clock):
    return FinalSubmissionService(store, variance_threshold=5.0, clock=clock)


def finished_order(store, initial_gold_weight=100.0, **kwargs):
    order = store.create_order(
        OrderFactory.create_in_factory(initial_gold_weight=initial_gold_weight, **kwargs)
    )
    store.create_tracking_batch(
        order.id, sequence.DEPARTMENT_ORDER, DepartmentStatus.COMPLETED
    )
    return order


class TestSubmitFinal:
    def test_within_tolerance(self, store, service):
        order = finished_order(store)

        outcome = service.submit_final(
            order.id,
            final_gold_weight=98.0,
            final_purity=22,
            completion_photos=PHOTOS,
            quality_grade=QualityGrade.A_PLUS,
            actor=QC,
        )

        submission = outcome.submission
        assert submission.weight_variance.percentage_variance == 2.0
        assert not submission.weight_variance.is_high_variance
        assert not submission.variance_acknowledged
        assert not submission.auto_submitted
        assert submission.submitted_by == "qc-1"
        assert outcome.order.status == OrderStatus.COMPLETED
        assert store.get_order(order.id).status == OrderStatus.COMPLETED
        assert [e.type for e in outcome.events] == [NotificationType.ORDER_SUBMITTED]

    def test_high_variance_requires_acknowledgement(self, store, service):
        order = finished_order(store)

        with pytest.raises(HighVarianceUnacknowledgedError) as exc_info:
            service.submit_final(
                order.id, final_gold_weight=94.0, final_purity=22, completion_photos=PHOTOS
            )

        variance = exc_info.value.details["weight_variance"]
        assert variance["percentage_variance"] == 6.0
        assert store.get_final_submission(order.id) is None
        assert store.get_order(order.id).status == OrderStatus.IN_FACTORY

    def test_acknowledged_high_variance_raises_alert(self, store, service):
        order = finished_order(store)

        outcome = service.submit_final(
            order.id,
            final_gold_weight=94.0,
            final_purity=22,
            completion_photos=PHOTOS,
            acknowledge_variance=True,
        )

        assert outcome.submission.variance_acknowledged
        assert [e.type for e in outcome.events] == [
            NotificationType.ORDER_SUBMITTED,
            NotificationType.HIGH_VARIANCE_ALERT,
        ]

    def test_incomplete_departments_listed(self, store, service):
        order = finished_order(store)
        store.upsert_tracking(
            order.id, DepartmentName.POLISH_2, {"status": DepartmentStatus.IN_PROGRESS}
        )
        store.upsert_tracking(
            order.id, DepartmentName.ADDITIONAL, {"status": DepartmentStatus.NOT_STARTED}
        )

        with pytest.raises(DepartmentsIncompleteError) as exc_info:
            service.submit_final(
                order.id, final_gold_weight=99.0, final_purity=22, completion_photos=PHOTOS
            )

        assert exc_info.value.incomplete_departments == ["POLISH_2", "ADDITIONAL"]

    def test_draft_order_rejected(self, store, service):
        order = store.create_order(OrderFactory.create())

        with pytest.raises(OrderNotInFactoryError):
            service.submit_final(
                order.id, final_gold_weight=10.0, final_purity=22, completion_photos=PHOTOS
            )

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFoundError):
            service.submit_final(
                OrderFactory.create().id,
                final_gold_weight=10.0,
                final_purity=22,
                completion_photos=PHOTOS,
            )

    def test_second_submission_rejected(self, store, service):
        order = finished_order(store)
        first = service.submit_final(
            order.id, final_gold_weight=99.0, final_purity=22, completion_photos=PHOTOS
        )

        with pytest.raises(OrderAlreadySubmittedError) as exc_info:
            service.submit_final(
                order.id, final_gold_weight=99.0, final_purity=22, completion_photos=PHOTOS
            )

        assert exc_info.value.details["existing_submission_id"] == str(first.submission.id)


class TestAutoSubmit:
    def test_uses_terminal_output_weight(self, store, service):
        order = finished_order(store, initial_gold_weight=10.0, purity=18.0, quantity=2)
        terminal = store.upsert_tracking(
            order.id,
            sequence.LAST_DEPARTMENT,
            {"gold_weight_out": 9.9, "photos": ["/uploads/done.jpg"]},
        )

        outcome = service.auto_submit(order, terminal)

        submission = outcome.submission
        assert submission.auto_submitted
        assert submission.final_gold_weight == 9.9
        assert submission.final_purity == 18.0
        assert submission.number_of_pieces == 2
        assert submission.completion_photos == ["/uploads/done.jpg"]
        assert outcome.order.status == OrderStatus.COMPLETED

    def test_falls_back_to_initial_weight_and_default_purity(self, store, service):
        order = finished_order(store, initial_gold_weight=12.5, purity=None)
        terminal = store.get_tracking(order.id, sequence.LAST_DEPARTMENT)

        submission = service.auto_submit(order, terminal).submission

        assert submission.final_gold_weight == 12.5
        assert submission.final_purity == 22.0
        assert submission.weight_variance.percentage_variance == 0

    def test_existing_submission_is_left_alone(self, store, service):
        order = finished_order(store)
        service.submit_final(
            order.id, final_gold_weight=99.0, final_purity=22, completion_photos=PHOTOS
        )
        terminal = store.get_tracking(order.id, sequence.LAST_DEPARTMENT)

        assert service.auto_submit(order, terminal) is None
        assert len(store.list_final_submissions()) == 1


class TestApprovalAndReporting:
    def test_customer_approval(self, store, service, clock):
        order = finished_order(store)
        service.submit_final(
            order.id, final_gold_weight=99.0, final_purity=22, completion_photos=PHOTOS
        )

        updated = service.update_customer_approval(order.id, True, "Approved by phone")

        assert updated.customer_approved
        assert updated.approval_date == clock.now
        assert store.get_final_submission(order.id).approval_notes == "Approved by phone"

    def test_approval_without_submission(self, store, service):
        order = finished_order(store)
        with pytest.raises(SubmissionNotFoundError):
            service.update_customer_approval(order.id, True)

    def test_variance_report_includes_department_losses(self, store, service):
        order = finished_order(store, initial_gold_weight=10.0)
        store.upsert_tracking(order.id, DepartmentName.CAD, {"gold_loss": 0.02})
        store.upsert_tracking(order.id, DepartmentName.FILLING, {"gold_loss": -0.01})
        service.submit_final(
            order.id, final_gold_weight=9.99, final_purity=22, completion_photos=PHOTOS
        )

        submission, report = service.get_variance_report(order.id)

        assert submission.order_id == order.id
        assert report.total_gold_loss == 0.01
        assert report.weight_gain_departments == ["FILLING"]

    def test_summary(self, store, service):
        assert service.summarize().total_submissions == 0

        calm = finished_order(store)
        wild = finished_order(store)
        service.submit_final(
            calm.id, final_gold_weight=99.0, final_purity=22, completion_photos=PHOTOS
        )
        service.submit_final(
            wild.id,
            final_gold_weight=93.0,
            final_purity=22,
            completion_photos=PHOTOS,
            acknowledge_variance=True,
        )
        service.update_customer_approval(calm.id, True)

        summary = service.summarize()

        assert summary.total_submissions == 2
        assert summary.high_variance_count == 1
        assert summary.pending_approval_count == 1
        assert summary.average_variance == 4.0
