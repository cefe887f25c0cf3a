from .order import Order
from .submission import AUTO_SUBMISSION_NOTES, FinalSubmission
from .tracking import DepartmentTracking
from .work_data import DepartmentWorkData
from .worker import Worker, WorkerWorkload

__all__ = [
    "AUTO_SUBMISSION_NOTES",
    "DepartmentTracking",
    "DepartmentWorkData",
    "FinalSubmission",
    "Order",
    "Worker",
    "WorkerWorkload",
]
