"""DepartmentTracking entity: one order's progress through one department."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from ...shared.base import Entity, utc_now
from ...shared.exceptions import InvalidStatusTransitionError
from ..value_objects import sequence
from ..value_objects.enums import DepartmentName, DepartmentStatus
from ..value_objects.weight import calculate_gold_loss

# Columns written back to the tracking store by to_patch().
PERSISTED_FIELDS = frozenset(
    {
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
        "photos",
    }
)


class DepartmentTracking(Entity):
    """
    Mutable per-order-per-department state.

    Status changes go through _change_status so every mutation honours the
    transition table; administrative overrides are the explicit exceptions
    (force_complete, reset).
    """

    order_id: UUID
    department_name: DepartmentName
    status: DepartmentStatus = DepartmentStatus.NOT_STARTED
    assigned_worker_id: UUID | None = None

    gold_weight_in: float | None = Field(default=None, ge=0)
    gold_weight_out: float | None = Field(default=None, ge=0)
    gold_loss: float | None = None

    estimated_hours: float | None = Field(default=None, ge=0)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    notes: str | None = None
    issues: str | None = None
    photos: list[str] = Field(default_factory=list)

    @field_validator("notes", "issues")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    def is_valid(self) -> bool:
        if self.completed_at and self.started_at and self.completed_at < self.started_at:
            return False
        return not (self.status == DepartmentStatus.COMPLETED and self.completed_at is None)

    @property
    def sequence_index(self) -> int:
        return sequence.sequence_number(self.department_name)

    @property
    def display_name(self) -> str:
        return sequence.display_name(self.department_name)

    @property
    def duration_hours(self) -> float | None:
        """Elapsed hours between start and completion, rounded to 2dp."""
        if not self.started_at or not self.completed_at:
            return None
        seconds = (self.completed_at - self.started_at).total_seconds()
        return round(seconds / 3600, 2)

    def _change_status(self, new_status: DepartmentStatus) -> None:
        if not self.status.can_transition_to(new_status):
            raise InvalidStatusTransitionError(
                self.status.value, new_status.value, self.department_name.value
            )
        self.status = new_status
        self.mark_updated()

    def assign_worker(self, worker_id: UUID) -> None:
        """Attach a worker; a pending record becomes ready to start."""
        if self.status == DepartmentStatus.COMPLETED:
            raise InvalidStatusTransitionError(
                self.status.value,
                DepartmentStatus.NOT_STARTED.value,
                self.department_name.value,
                "cannot assign a worker to a completed department",
            )
        if self.status == DepartmentStatus.PENDING_ASSIGNMENT:
            self._change_status(DepartmentStatus.NOT_STARTED)
        self.assigned_worker_id = worker_id
        self.mark_updated()

    def unassign_worker(self) -> None:
        if not self.status.is_waiting:
            raise InvalidStatusTransitionError(
                self.status.value,
                self.status.value,
                self.department_name.value,
                "workers can only be unassigned before work starts",
            )
        self.assigned_worker_id = None
        self.mark_updated()

    def start(
        self,
        started_at: datetime | None = None,
        gold_weight_in: float | None = None,
        estimated_hours: float | None = None,
        notes: str | None = None,
    ) -> None:
        self._change_status(DepartmentStatus.IN_PROGRESS)
        self.started_at = started_at or utc_now()
        self.completed_at = None
        if gold_weight_in is not None:
            self.gold_weight_in = gold_weight_in
        if estimated_hours is not None:
            self.estimated_hours = estimated_hours
        if notes is not None:
            self.notes = notes

    def complete(
        self,
        completed_at: datetime | None = None,
        gold_weight_out: float | None = None,
        notes: str | None = None,
        issues: str | None = None,
    ) -> None:
        self._change_status(DepartmentStatus.COMPLETED)
        self.completed_at = completed_at or utc_now()
        if gold_weight_out is not None:
            self.gold_weight_out = gold_weight_out
        self.gold_loss = calculate_gold_loss(self.gold_weight_in, self.gold_weight_out)
        if notes is not None:
            self.notes = notes
        if issues is not None:
            self.issues = issues

    def put_on_hold(self, reason: str) -> None:
        self._change_status(DepartmentStatus.ON_HOLD)
        self.issues = reason

    def resume(self) -> None:
        if self.status != DepartmentStatus.ON_HOLD:
            raise InvalidStatusTransitionError(
                self.status.value,
                DepartmentStatus.IN_PROGRESS.value,
                self.department_name.value,
                "only a department on hold can be resumed",
            )
        self._change_status(DepartmentStatus.IN_PROGRESS)
        self.issues = None

    def force_complete(self, completed_at: datetime | None = None) -> None:
        """Administrative completion used when an order is moved elsewhere."""
        self.status = DepartmentStatus.COMPLETED
        self.completed_at = completed_at or utc_now()
        self.gold_loss = calculate_gold_loss(self.gold_weight_in, self.gold_weight_out)
        self.mark_updated()

    def reset(self) -> None:
        """Administrative reset to a fresh, unassigned NOT_STARTED record."""
        self.status = DepartmentStatus.NOT_STARTED
        self.started_at = None
        self.completed_at = None
        self.assigned_worker_id = None
        self.mark_updated()

    def add_photos(self, photos: list[str], notes: str | None = None) -> None:
        self.photos = [*self.photos, *photos]
        if notes:
            self.notes = f"{self.notes}\n{notes}" if self.notes else notes
        self.mark_updated()

    def to_patch(self) -> dict[str, Any]:
        """Persisted field values, as consumed by TrackingStore.upsert_tracking."""
        return self.model_dump(include=set(PERSISTED_FIELDS))
