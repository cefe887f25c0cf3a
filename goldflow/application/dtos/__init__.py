from .workflow_dtos import (
    AssignWorkerInput,
    BulkSendItem,
    BulkSendResult,
    CompleteDepartmentInput,
    CompleteWorkInput,
    CustomerApprovalInput,
    DepartmentLoad,
    FactoryStats,
    OrderDepartmentsSummary,
    PhotoUploadInput,
    StartDepartmentInput,
    SubmissionRequest,
    SubmissionResponse,
    TrackingResponse,
    WorkDataResponse,
    WorkProgressInput,
    WorkViewResponse,
)

__all__ = [
    "AssignWorkerInput",
    "BulkSendItem",
    "BulkSendResult",
    "CompleteDepartmentInput",
    "CompleteWorkInput",
    "CustomerApprovalInput",
    "DepartmentLoad",
    "FactoryStats",
    "OrderDepartmentsSummary",
    "PhotoUploadInput",
    "StartDepartmentInput",
    "SubmissionRequest",
    "SubmissionResponse",
    "TrackingResponse",
    "WorkDataResponse",
    "WorkProgressInput",
    "WorkViewResponse",
]
