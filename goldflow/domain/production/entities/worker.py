"""Worker entity."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ...shared.base import Entity, utc_now
from ..value_objects.enums import DepartmentName


class Worker(Entity):
    """Craftsperson affiliated with one department."""

    name: str = Field(min_length=1, max_length=100)
    email: str | None = None
    department: DepartmentName
    is_active: bool = True
    # Fairness signal only; the oldest value wins ties during auto-assignment.
    last_assigned_at: datetime | None = None

    def is_valid(self) -> bool:
        return bool(self.name.strip())

    def record_assignment(self, at: datetime | None = None) -> None:
        self.last_assigned_at = at or utc_now()
        self.mark_updated()


class WorkerWorkload(BaseModel):
    """Worker snapshot with the live count of IN_PROGRESS records."""

    worker: Worker
    workload: int = Field(ge=0)

    @property
    def id(self) -> UUID:
        return self.worker.id

    @property
    def fairness_key(self) -> tuple[int, datetime]:
        # Never-assigned workers sort before everybody else.
        return (self.workload, self.worker.last_assigned_at or datetime.min)
