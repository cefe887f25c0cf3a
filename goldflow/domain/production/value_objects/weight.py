"""Gold weight accounting value objects."""

from pydantic import Field, computed_field

from goldflow.domain.shared.base import ValueObject

DEFAULT_VARIANCE_THRESHOLD = 5.0


def calculate_gold_loss(
    weight_in: float | None, weight_out: float | None
) -> float | None:
    """Signed loss in grams, rounded to the milligram.

    Negative values mean the piece gained weight in the department; they are
    kept as-is and surfaced by the variance report.
    """
    if weight_in is None or weight_out is None:
        return None
    return round((weight_in - weight_out) * 1000) / 1000


class WeightVariance(ValueObject):
    """Deviation between intake gold weight and final submitted weight."""

    initial_weight: float
    final_weight: float
    alert_threshold: float = DEFAULT_VARIANCE_THRESHOLD

    @computed_field  # type: ignore[prop-decorator]
    @property
    def absolute_variance(self) -> float:
        return round(self.final_weight - self.initial_weight, 3)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percentage_variance(self) -> float:
        if self.initial_weight <= 0:
            return 0.0
        return round(
            abs(self.final_weight - self.initial_weight) / self.initial_weight * 100, 2
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_high_variance(self) -> bool:
        return self.percentage_variance > self.alert_threshold


def calculate_weight_variance(
    initial_weight: float,
    final_weight: float,
    threshold: float = DEFAULT_VARIANCE_THRESHOLD,
) -> WeightVariance:
    return WeightVariance(
        initial_weight=initial_weight,
        final_weight=final_weight,
        alert_threshold=threshold,
    )


class DepartmentLoss(ValueObject):
    department: str
    gold_loss: float


class VarianceReport(ValueObject):
    """Order-level weight report attached to a final submission."""

    variance: WeightVariance
    department_losses: list[DepartmentLoss] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_gold_loss(self) -> float:
        return round(sum(loss.gold_loss for loss in self.department_losses), 3)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def weight_gain_departments(self) -> list[str]:
        return [loss.department for loss in self.department_losses if loss.gold_loss < 0]
