"""Request and response models for the workflow application services."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from goldflow.domain.production.entities import (
    DepartmentTracking,
    DepartmentWorkData,
    FinalSubmission,
)
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
    QualityGrade,
)
from goldflow.domain.production.value_objects.weight import VarianceReport


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


# Requests


class StartDepartmentInput(BaseModel):
    gold_weight_in: float | None = Field(default=None, ge=0, le=10000)
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _strip(v)


class CompleteDepartmentInput(BaseModel):
    gold_weight_out: float | None = Field(default=None, ge=0, le=10000)
    notes: str | None = Field(default=None, max_length=2000)
    issues: str | None = Field(default=None, max_length=2000)

    @field_validator("notes", "issues")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _strip(v)


class AssignWorkerInput(BaseModel):
    worker_id: UUID
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    notes: str | None = Field(default=None, max_length=2000)


class PhotoUploadInput(BaseModel):
    photos: list[str] = Field(min_length=1, max_length=10)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("photos")
    @classmethod
    def check_urls(cls, photos: list[str]) -> list[str]:
        for url in photos:
            if not url.startswith(("http://", "https://", "/")):
                raise ValueError(f"Invalid photo URL: {url}")
        return photos


def _check_attachment_urls(urls: list[str]) -> list[str]:
    for url in urls:
        if not url.startswith(("http://", "https://", "/")):
            raise ValueError(f"Invalid attachment URL: {url}")
    return urls


class WorkProgressInput(BaseModel):
    form_data: dict[str, Any] = Field(default_factory=dict)
    uploaded_files: list[str] = Field(default_factory=list, max_length=50)
    uploaded_photos: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("uploaded_files", "uploaded_photos")
    @classmethod
    def check_urls(cls, urls: list[str]) -> list[str]:
        return _check_attachment_urls(urls)


class CompleteWorkInput(WorkProgressInput):
    gold_weight_out: float | None = Field(default=None, ge=0, le=10000)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _strip(v)


class SubmissionRequest(BaseModel):
    final_gold_weight: float = Field(gt=0, le=10000)
    final_stone_weight: float = Field(default=0.0, ge=0)
    final_purity: float = Field(ge=1, le=24)
    number_of_pieces: int = Field(default=1, ge=1)
    total_weight: float | None = Field(default=None, ge=0)
    quality_grade: QualityGrade | None = None
    quality_notes: str | None = Field(default=None, max_length=2000)
    completion_photos: list[str] = Field(min_length=1, max_length=20)
    certificate_url: str | None = None
    acknowledge_variance: bool = False


class CustomerApprovalInput(BaseModel):
    approved: bool
    notes: str | None = Field(default=None, max_length=2000)


# Responses


class TrackingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    department_name: DepartmentName
    display_name: str
    sequence_index: int
    status: DepartmentStatus
    assigned_worker_id: UUID | None
    gold_weight_in: float | None
    gold_weight_out: float | None
    gold_loss: float | None
    estimated_hours: float | None
    started_at: datetime | None
    completed_at: datetime | None
    duration_hours: float | None
    notes: str | None
    issues: str | None
    photos: list[str]

    @classmethod
    def from_entity(cls, tracking: DepartmentTracking) -> "TrackingResponse":
        return cls.model_validate(tracking)


class OrderDepartmentsSummary(BaseModel):
    order_id: UUID
    order_number: str
    order_status: OrderStatus
    total_departments: int
    completed_departments: int
    current_department: DepartmentName | None
    completion_percentage: int
    total_estimated_hours: float
    total_actual_hours: float | None
    departments: list[TrackingResponse]


class DepartmentLoad(BaseModel):
    department: DepartmentName
    display_name: str
    order_count: int
    gold_weight: float


class FactoryStats(BaseModel):
    orders_in_factory: int
    total_gold_in_factory: float
    total_gold_loss: float
    orders_by_department: list[DepartmentLoad]


class BulkSendItem(BaseModel):
    order_id: UUID
    success: bool
    departments_created: int = 0
    first_department_assigned: bool = False
    error: dict[str, Any] | None = None


class BulkSendResult(BaseModel):
    results: list[BulkSendItem]
    success_count: int
    failed_count: int


class SubmissionResponse(BaseModel):
    submission: FinalSubmission
    report: VarianceReport


class WorkDataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    department_name: DepartmentName
    form_data: dict[str, Any]
    uploaded_files: list[str]
    uploaded_photos: list[str]
    work_started_at: datetime | None
    work_completed_at: datetime | None
    time_spent_hours: float | None
    last_saved_at: datetime | None
    is_draft: bool
    is_complete: bool

    @classmethod
    def from_entity(cls, work_data: DepartmentWorkData) -> "WorkDataResponse":
        return cls.model_validate(work_data)


class WorkViewResponse(BaseModel):
    """A worker's job: the order, their department record and saved work."""

    order_id: UUID
    order_number: str
    order_status: OrderStatus
    tracking: TrackingResponse
    work_data: WorkDataResponse | None
