"""FinalSubmission entity closing out an order's factory journey."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ...shared.base import Entity, utc_now
from ..value_objects.enums import QualityGrade
from ..value_objects.weight import WeightVariance

AUTO_SUBMISSION_NOTES = "Auto-submitted upon completion of all departments"


class FinalSubmission(Entity):
    order_id: UUID
    final_gold_weight: float = Field(ge=0)
    final_stone_weight: float = Field(default=0.0, ge=0)
    final_purity: float = Field(ge=1, le=24)
    number_of_pieces: int = Field(default=1, ge=1)
    total_weight: float | None = Field(default=None, ge=0)
    quality_grade: QualityGrade | None = None
    quality_notes: str | None = None
    completion_photos: list[str] = Field(default_factory=list)
    certificate_url: str | None = None
    weight_variance: WeightVariance
    variance_acknowledged: bool = False
    auto_submitted: bool = False

    submitted_by: str | None = None
    submitted_at: datetime = Field(default_factory=utc_now)

    # Customer approval sub-state, toggled after creation.
    customer_approved: bool = False
    approval_date: datetime | None = None
    approval_notes: str | None = None

    def is_valid(self) -> bool:
        return self.final_gold_weight >= 0 and self.number_of_pieces >= 1

    def set_customer_approval(
        self, approved: bool, notes: str | None = None, at: datetime | None = None
    ) -> None:
        self.customer_approved = approved
        self.approval_date = (at or utc_now()) if approved else None
        self.approval_notes = notes
        self.mark_updated()
