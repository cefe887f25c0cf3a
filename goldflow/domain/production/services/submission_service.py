"""
Final Submission Service

Weight and variance accounting for the close-out of an order: explicit final
submission with its variance gate, the automatic submission created when the
terminal department completes, and customer approval.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from goldflow.core.observability import get_logger

from ...shared.base import utc_now
from ...shared.exceptions import (
    DepartmentsIncompleteError,
    HighVarianceUnacknowledgedError,
    OrderAlreadySubmittedError,
    OrderNotFoundError,
    OrderNotInFactoryError,
    SubmissionNotFoundError,
)
from ..entities.order import Order
from ..entities.submission import AUTO_SUBMISSION_NOTES, FinalSubmission
from ..entities.tracking import DepartmentTracking
from ..events import notifications
from ..events.notifications import Actor, NotificationEvent
from ..repositories.tracking_store import TrackingStore
from ..value_objects.enums import OrderStatus, QualityGrade
from ..value_objects.weight import (
    DEFAULT_VARIANCE_THRESHOLD,
    DepartmentLoss,
    VarianceReport,
    WeightVariance,
    calculate_weight_variance,
)
from . import transition_validator as validator

logger = get_logger(__name__)

DEFAULT_PURITY = 22.0


@dataclass
class SubmissionOutcome:
    order: Order
    submission: FinalSubmission
    report: VarianceReport
    events: list[NotificationEvent] = field(default_factory=list)


@dataclass
class SubmissionSummary:
    total_submissions: int
    high_variance_count: int
    pending_approval_count: int
    average_variance: float


def build_variance_report(
    variance: WeightVariance, records: list[DepartmentTracking]
) -> VarianceReport:
    losses = [
        DepartmentLoss(department=record.department_name.value, gold_loss=record.gold_loss)
        for record in records
        if record.gold_loss is not None
    ]
    return VarianceReport(variance=variance, department_losses=losses)


class FinalSubmissionService:
    """Gates and records the final submission of an order."""

    def __init__(
        self,
        store: TrackingStore,
        variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
        default_purity: float = DEFAULT_PURITY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._variance_threshold = variance_threshold
        self._default_purity = default_purity
        self._clock = clock

    def calculate_variance(self, initial_weight: float, final_weight: float) -> WeightVariance:
        return calculate_weight_variance(
            initial_weight, final_weight, self._variance_threshold
        )

    def submit_final(
        self,
        order_id: UUID,
        *,
        final_gold_weight: float,
        final_purity: float,
        completion_photos: list[str],
        final_stone_weight: float = 0.0,
        number_of_pieces: int = 1,
        total_weight: float | None = None,
        quality_grade: QualityGrade | None = None,
        quality_notes: str | None = None,
        certificate_url: str | None = None,
        acknowledge_variance: bool = False,
        actor: Actor | None = None,
    ) -> SubmissionOutcome:
        """
        Record the explicit final submission of a fully processed order.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAlreadySubmittedError: If a submission already exists
            OrderNotInFactoryError: If the order is not in the factory
            DepartmentsIncompleteError: If any department is not completed
            HighVarianceUnacknowledgedError: If variance exceeds the threshold
                and the caller did not acknowledge it
        """
        order = self._store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        existing = self._store.get_final_submission(order_id)
        if existing is not None:
            raise OrderAlreadySubmittedError(order_id, existing.id)

        if order.status != OrderStatus.IN_FACTORY:
            raise OrderNotInFactoryError(order_id, order.status.value)

        records = self._store.list_tracking(order_id)
        incomplete = validator.incomplete_departments(validator.status_map(records))
        if incomplete:
            raise DepartmentsIncompleteError(
                order_id, [department.value for department in incomplete]
            )

        variance = self.calculate_variance(order.initial_gold_weight, final_gold_weight)
        if variance.is_high_variance and not acknowledge_variance:
            raise HighVarianceUnacknowledgedError(variance.model_dump(mode="json"))

        submission = FinalSubmission(
            order_id=order_id,
            final_gold_weight=final_gold_weight,
            final_stone_weight=final_stone_weight,
            final_purity=final_purity,
            number_of_pieces=number_of_pieces,
            total_weight=total_weight,
            quality_grade=quality_grade,
            quality_notes=quality_notes,
            completion_photos=completion_photos,
            certificate_url=certificate_url,
            weight_variance=variance,
            variance_acknowledged=acknowledge_variance and variance.is_high_variance,
            submitted_by=actor.id if actor else None,
            submitted_at=self._clock(),
        )
        return self._record(order, submission, records, actor)

    def auto_submit(
        self, order: Order, terminal: DepartmentTracking, actor: Actor | None = None
    ) -> SubmissionOutcome | None:
        """
        Create the submission for an order whose terminal department completed.

        Uses the terminal department's output weight when recorded, otherwise
        the order's intake weight. Returns None if a submission already exists.
        """
        if self._store.get_final_submission(order.id) is not None:
            return None

        final_weight = (
            terminal.gold_weight_out
            if terminal.gold_weight_out is not None
            else order.initial_gold_weight
        )
        submission = FinalSubmission(
            order_id=order.id,
            final_gold_weight=final_weight,
            final_stone_weight=0.0,
            final_purity=order.purity or self._default_purity,
            number_of_pieces=order.quantity or 1,
            quality_notes=AUTO_SUBMISSION_NOTES,
            completion_photos=terminal.photos[:20],
            weight_variance=self.calculate_variance(order.initial_gold_weight, final_weight),
            auto_submitted=True,
            submitted_by=actor.id if actor else None,
            submitted_at=self._clock(),
        )
        return self._record(order, submission, self._store.list_tracking(order.id), actor)

    def update_customer_approval(
        self, order_id: UUID, approved: bool, notes: str | None = None
    ) -> FinalSubmission:
        submission = self._store.get_final_submission(order_id)
        if submission is None:
            raise SubmissionNotFoundError(order_id)
        submission.set_customer_approval(approved, notes, self._clock())
        logger.info(
            "customer_approval_updated", order_id=str(order_id), approved=approved
        )
        return self._store.update_final_submission(submission)

    def get_variance_report(self, order_id: UUID) -> tuple[FinalSubmission, VarianceReport]:
        submission = self._store.get_final_submission(order_id)
        if submission is None:
            raise SubmissionNotFoundError(order_id)
        report = build_variance_report(
            submission.weight_variance, self._store.list_tracking(order_id)
        )
        return submission, report

    def summarize(self) -> SubmissionSummary:
        submissions = self._store.list_final_submissions()
        if not submissions:
            return SubmissionSummary(0, 0, 0, 0.0)
        variances = [s.weight_variance.percentage_variance for s in submissions]
        return SubmissionSummary(
            total_submissions=len(submissions),
            high_variance_count=sum(
                1 for s in submissions if s.weight_variance.is_high_variance
            ),
            pending_approval_count=sum(1 for s in submissions if not s.customer_approved),
            average_variance=round(sum(variances) / len(variances), 2),
        )

    def _record(
        self,
        order: Order,
        submission: FinalSubmission,
        records: list[DepartmentTracking],
        actor: Actor | None,
    ) -> SubmissionOutcome:
        created = self._store.create_final_submission(order.id, submission)
        validator.refresh_order_status(order, records, has_submission=True, at=self._clock())
        self._store.save_order(order)

        events = [notifications.order_submitted(order, created, actor)]
        if created.weight_variance.is_high_variance:
            events.append(notifications.high_variance_alert(order, created, actor))
            logger.warning(
                "high_weight_variance",
                order_id=str(order.id),
                percentage_variance=created.weight_variance.percentage_variance,
                acknowledged=created.variance_acknowledged,
            )

        report = build_variance_report(created.weight_variance, records)
        if report.weight_gain_departments:
            logger.warning(
                "negative_gold_loss",
                order_id=str(order.id),
                departments=report.weight_gain_departments,
            )

        logger.info(
            "order_submitted",
            order_id=str(order.id),
            submission_id=str(created.id),
            auto_submitted=created.auto_submitted,
        )
        return SubmissionOutcome(order=order, submission=created, report=report, events=events)
