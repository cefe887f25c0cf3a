"""Conversions between SQLModel rows and domain entities."""

from typing import Any

from goldflow.domain.production.entities import (
    DepartmentTracking,
    DepartmentWorkData,
    FinalSubmission,
    Order,
    Worker,
)
from goldflow.domain.production.value_objects.weight import WeightVariance

from .models import (
    DepartmentTrackingModel,
    DepartmentWorkDataModel,
    FinalSubmissionModel,
    OrderModel,
    WorkerModel,
)

_ORDER_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "order_number",
    "customer_name",
    "status",
    "initial_gold_weight",
    "purity",
    "quantity",
    "current_department",
    "sent_to_factory_at",
    "completed_at",
)

_WORKER_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "name",
    "email",
    "department",
    "is_active",
    "last_assigned_at",
)

_TRACKING_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "order_id",
    "department_name",
    "status",
    "assigned_worker_id",
    "gold_weight_in",
    "gold_weight_out",
    "gold_loss",
    "estimated_hours",
    "started_at",
    "completed_at",
    "notes",
    "issues",
)

_WORK_DATA_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "order_id",
    "department_name",
    "work_started_at",
    "work_completed_at",
    "time_spent_hours",
    "last_saved_at",
    "is_draft",
    "is_complete",
)

_SUBMISSION_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "order_id",
    "final_gold_weight",
    "final_stone_weight",
    "final_purity",
    "number_of_pieces",
    "total_weight",
    "quality_grade",
    "quality_notes",
    "certificate_url",
    "variance_acknowledged",
    "auto_submitted",
    "submitted_by",
    "submitted_at",
    "customer_approved",
    "approval_date",
    "approval_notes",
)


def _pick(source: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    return {name: getattr(source, name) for name in fields}


def order_to_domain(row: OrderModel) -> Order:
    return Order(**_pick(row, _ORDER_FIELDS))


def order_to_row(order: Order, row: OrderModel | None = None) -> OrderModel:
    values = _pick(order, _ORDER_FIELDS)
    if row is None:
        return OrderModel(**values)
    for name, value in values.items():
        setattr(row, name, value)
    return row


def worker_to_domain(row: WorkerModel) -> Worker:
    return Worker(**_pick(row, _WORKER_FIELDS))


def worker_to_row(worker: Worker, row: WorkerModel | None = None) -> WorkerModel:
    values = _pick(worker, _WORKER_FIELDS)
    if row is None:
        return WorkerModel(**values)
    for name, value in values.items():
        setattr(row, name, value)
    return row


def tracking_to_domain(row: DepartmentTrackingModel) -> DepartmentTracking:
    return DepartmentTracking(**_pick(row, _TRACKING_FIELDS), photos=list(row.photos or []))


def work_data_to_domain(row: DepartmentWorkDataModel) -> DepartmentWorkData:
    return DepartmentWorkData(
        **_pick(row, _WORK_DATA_FIELDS),
        form_data=dict(row.form_data or {}),
        uploaded_files=list(row.uploaded_files or []),
        uploaded_photos=list(row.uploaded_photos or []),
    )


def work_data_to_row(
    work_data: DepartmentWorkData, row: DepartmentWorkDataModel | None = None
) -> DepartmentWorkDataModel:
    values = _pick(work_data, _WORK_DATA_FIELDS) | {
        "form_data": dict(work_data.form_data),
        "uploaded_files": list(work_data.uploaded_files),
        "uploaded_photos": list(work_data.uploaded_photos),
    }
    if row is None:
        return DepartmentWorkDataModel(**values)
    for name, value in values.items():
        setattr(row, name, value)
    return row


def submission_to_domain(row: FinalSubmissionModel) -> FinalSubmission:
    variance = WeightVariance(
        initial_weight=row.initial_gold_weight,
        final_weight=row.final_gold_weight,
        alert_threshold=row.alert_threshold,
    )
    return FinalSubmission(
        **_pick(row, _SUBMISSION_FIELDS),
        completion_photos=list(row.completion_photos or []),
        weight_variance=variance,
    )


def submission_to_row(
    submission: FinalSubmission, row: FinalSubmissionModel | None = None
) -> FinalSubmissionModel:
    variance = submission.weight_variance
    values = _pick(submission, _SUBMISSION_FIELDS) | {
        "completion_photos": list(submission.completion_photos),
        "initial_gold_weight": variance.initial_weight,
        "alert_threshold": variance.alert_threshold,
        "percentage_variance": variance.percentage_variance,
        "is_high_variance": variance.is_high_variance,
    }
    if row is None:
        return FinalSubmissionModel(**values)
    for name, value in values.items():
        setattr(row, name, value)
    return row
