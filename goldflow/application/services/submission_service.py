"""Final submission application service."""

from uuid import UUID

from goldflow.domain.production.entities import FinalSubmission
from goldflow.domain.production.events import Actor
from goldflow.domain.production.services import SubmissionOutcome, SubmissionSummary
from goldflow.domain.production.value_objects.weight import (
    WeightVariance,
    calculate_weight_variance,
)

from ..dtos.workflow_dtos import (
    CustomerApprovalInput,
    SubmissionRequest,
    SubmissionResponse,
)
from .base_service import ApplicationServiceBase


class SubmissionApplicationService(ApplicationServiceBase):
    """Final submission, variance reporting and customer approval."""

    def calculate_weight_variance(
        self, initial_weight: float, final_weight: float
    ) -> WeightVariance:
        return calculate_weight_variance(
            initial_weight, final_weight, self._settings.WEIGHT_VARIANCE_ALERT_THRESHOLD
        )

    def submit_final(
        self, order_id: UUID, request: SubmissionRequest, actor: Actor | None = None
    ) -> SubmissionOutcome:
        """
        Submit a fully processed order.

        Raises:
            OrderNotFoundError, OrderAlreadySubmittedError, OrderNotInFactoryError,
            DepartmentsIncompleteError, HighVarianceUnacknowledgedError
        """
        return self._run(
            "submit_final",
            lambda store: self._submission_service(store).submit_final(
                order_id,
                final_gold_weight=request.final_gold_weight,
                final_stone_weight=request.final_stone_weight,
                final_purity=request.final_purity,
                number_of_pieces=request.number_of_pieces,
                total_weight=request.total_weight,
                quality_grade=request.quality_grade,
                quality_notes=request.quality_notes,
                completion_photos=request.completion_photos,
                certificate_url=request.certificate_url,
                acknowledge_variance=request.acknowledge_variance,
                actor=actor,
            ),
        )

    def update_customer_approval(
        self, order_id: UUID, data: CustomerApprovalInput
    ) -> FinalSubmission:
        return self._run(
            "update_customer_approval",
            lambda store: self._submission_service(store).update_customer_approval(
                order_id, data.approved, data.notes
            ),
        )

    def get_submission(self, order_id: UUID) -> SubmissionResponse:
        submission, report = self._run(
            "get_submission",
            lambda store: self._submission_service(store).get_variance_report(order_id),
        )
        return SubmissionResponse(submission=submission, report=report)

    def get_submission_summary(self) -> SubmissionSummary:
        return self._run(
            "get_submission_summary",
            lambda store: self._submission_service(store).summarize(),
        )
