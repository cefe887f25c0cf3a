from .enums import (
    DepartmentName,
    DepartmentStatus,
    NotificationType,
    OrderStatus,
    QualityGrade,
)
from .weight import (
    VarianceReport,
    WeightVariance,
    calculate_gold_loss,
    calculate_weight_variance,
)

__all__ = [
    "DepartmentName",
    "DepartmentStatus",
    "NotificationType",
    "OrderStatus",
    "QualityGrade",
    "VarianceReport",
    "WeightVariance",
    "calculate_gold_loss",
    "calculate_weight_variance",
]
