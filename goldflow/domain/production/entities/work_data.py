"""DepartmentWorkData entity: what a worker recorded while doing one department."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from ...shared.base import Entity, utc_now
from ..value_objects.enums import DepartmentName


class DepartmentWorkData(Entity):
    """
    Form data, files and photos a worker attaches to a department.

    Saved as a draft while work is under way and sealed once by complete().
    """

    order_id: UUID
    department_name: DepartmentName

    form_data: dict[str, Any] = Field(default_factory=dict)
    uploaded_files: list[str] = Field(default_factory=list)
    uploaded_photos: list[str] = Field(default_factory=list)

    work_started_at: datetime | None = None
    work_completed_at: datetime | None = None
    time_spent_hours: float | None = Field(default=None, ge=0)
    last_saved_at: datetime | None = None
    is_draft: bool = True
    is_complete: bool = False

    def is_valid(self) -> bool:
        if self.is_complete and self.is_draft:
            return False
        if self.work_started_at and self.work_completed_at:
            return self.work_completed_at >= self.work_started_at
        return True

    def record_progress(
        self,
        form_data: dict[str, Any] | None = None,
        uploaded_files: list[str] | None = None,
        uploaded_photos: list[str] | None = None,
    ) -> None:
        self.form_data = dict(form_data or {})
        self.uploaded_files = list(uploaded_files or [])
        self.uploaded_photos = list(uploaded_photos or [])

    def start(self, at: datetime | None = None) -> None:
        self.work_started_at = self.work_started_at or at or utc_now()
        self.mark_updated()

    def save_draft(self, at: datetime | None = None) -> None:
        at = at or utc_now()
        self.work_started_at = self.work_started_at or at
        self.last_saved_at = at
        self.is_draft = True
        self.mark_updated()

    def complete(self, started_at: datetime | None, at: datetime | None = None) -> None:
        """Seal the record; time spent runs from `started_at` (or now) to `at`."""
        at = at or utc_now()
        started_at = started_at or at
        self.work_started_at = self.work_started_at or started_at
        self.work_completed_at = at
        self.time_spent_hours = round(max((at - started_at).total_seconds(), 0) / 3600, 2)
        self.last_saved_at = at
        self.is_draft = False
        self.is_complete = True
        self.mark_updated()

    @property
    def file_count(self) -> int:
        return len(self.uploaded_files) + len(self.uploaded_photos)
