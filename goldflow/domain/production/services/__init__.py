from .assignment_service import AssignmentResult, AutoAssignmentService, select_worker
from .cascade_controller import (
    CascadeController,
    CompletionOutcome,
    FactoryDispatch,
    MoveOutcome,
    TransitionOutcome,
)
from .submission_service import (
    FinalSubmissionService,
    SubmissionOutcome,
    SubmissionSummary,
)
from .work_service import WorkCompletion, WorkerWorkService, WorkOutcome, WorkView

__all__ = [
    "AssignmentResult",
    "AutoAssignmentService",
    "CascadeController",
    "CompletionOutcome",
    "FactoryDispatch",
    "FinalSubmissionService",
    "MoveOutcome",
    "SubmissionOutcome",
    "SubmissionSummary",
    "TransitionOutcome",
    "WorkCompletion",
    "WorkOutcome",
    "WorkView",
    "WorkerWorkService",
    "select_worker",
]
