"""
SQLModel table definitions for the production floor.

Table models are persistence shapes only; mappers.py converts them to and
from domain entities.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
    QualityGrade,
)
from goldflow.domain.shared.base import utc_now


# Base classes for shared fields
class TimestampedModel(SQLModel):
    """Base model with timestamp fields."""

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime | None = None


class IdentifiedModel(TimestampedModel):
    """Base model with UUID primary key and timestamps."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)


class OrderModel(IdentifiedModel, table=True):
    __tablename__ = "orders"

    order_number: str = Field(min_length=1, max_length=50, unique=True, index=True)
    customer_name: str | None = Field(default=None, max_length=100)
    status: OrderStatus = Field(default=OrderStatus.DRAFT, index=True)
    initial_gold_weight: float = Field(ge=0)
    purity: float | None = None
    quantity: int = Field(default=1, ge=1)
    current_department: DepartmentName | None = None
    sent_to_factory_at: datetime | None = None
    completed_at: datetime | None = None


class WorkerModel(IdentifiedModel, table=True):
    __tablename__ = "workers"

    name: str = Field(max_length=100)
    email: str | None = Field(default=None, max_length=255)
    department: DepartmentName = Field(index=True)
    is_active: bool = Field(default=True, index=True)
    last_assigned_at: datetime | None = None


class DepartmentTrackingModel(IdentifiedModel, table=True):
    __tablename__ = "department_tracking"
    __table_args__ = (
        UniqueConstraint("order_id", "department_name", name="uq_tracking_order_department"),
    )

    order_id: UUID = Field(foreign_key="orders.id", index=True)
    department_name: DepartmentName = Field(index=True)
    status: DepartmentStatus = Field(default=DepartmentStatus.NOT_STARTED, index=True)
    assigned_worker_id: UUID | None = Field(
        default=None, foreign_key="workers.id", index=True
    )

    gold_weight_in: float | None = None
    gold_weight_out: float | None = None
    gold_loss: float | None = None

    estimated_hours: float | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    notes: str | None = None
    issues: str | None = None
    photos: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))


class FinalSubmissionModel(IdentifiedModel, table=True):
    __tablename__ = "final_submissions"

    order_id: UUID = Field(foreign_key="orders.id", unique=True, index=True)
    final_gold_weight: float
    final_stone_weight: float = 0.0
    final_purity: float
    number_of_pieces: int = 1
    total_weight: float | None = None
    quality_grade: QualityGrade | None = None
    quality_notes: str | None = None
    completion_photos: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    certificate_url: str | None = None

    # Variance snapshot taken at submission time
    initial_gold_weight: float
    alert_threshold: float
    percentage_variance: float = Field(index=True)
    is_high_variance: bool = Field(default=False, index=True)
    variance_acknowledged: bool = False
    auto_submitted: bool = False

    submitted_by: str | None = None
    submitted_at: datetime = Field(default_factory=utc_now)

    customer_approved: bool = Field(default=False, index=True)
    approval_date: datetime | None = None
    approval_notes: str | None = None


class DepartmentWorkDataModel(IdentifiedModel, table=True):
    __tablename__ = "department_work_data"
    __table_args__ = (
        UniqueConstraint("order_id", "department_name", name="uq_work_data_order_department"),
    )

    order_id: UUID = Field(foreign_key="orders.id", index=True)
    department_name: DepartmentName = Field(index=True)

    form_data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    uploaded_files: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    uploaded_photos: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    work_started_at: datetime | None = None
    work_completed_at: datetime | None = None
    time_spent_hours: float | None = None
    last_saved_at: datetime | None = None
    is_draft: bool = True
    is_complete: bool = Field(default=False, index=True)
