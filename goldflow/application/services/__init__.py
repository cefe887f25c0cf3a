from .base_service import ApplicationServiceBase
from .submission_service import SubmissionApplicationService
from .workflow_service import DepartmentWorkflowService

__all__ = [
    "ApplicationServiceBase",
    "DepartmentWorkflowService",
    "SubmissionApplicationService",
]
