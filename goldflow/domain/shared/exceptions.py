"""
Domain Exceptions

Every workflow failure is a DomainError subclass carrying a stable code and
structured details, so callers can render a specific message (which department
is blocking, which departments remain incomplete) without parsing text.
"""

from enum import Enum
from typing import Any
from uuid import UUID

DetailValue = str | int | float | bool | list[str] | dict[str, Any] | None


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INFRASTRUCTURE = "infrastructure"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    code = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, DetailValue] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when a field value breaks a domain rule."""

    code = "VALIDATION_ERROR"

    def __init__(self, field_name: str, value: DetailValue, message: str) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Validation failed for field '{field_name}': {message}",
            ErrorType.VALIDATION,
            {"field": field_name, "value": str(value) if value is not None else None},
        )


class OrderNotFoundError(DomainError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: UUID) -> None:
        self.order_id = order_id
        super().__init__(
            f"Order {order_id} not found",
            ErrorType.NOT_FOUND,
            {"order_id": str(order_id)},
        )


class TrackingNotFoundError(DomainError):
    code = "TRACKING_NOT_FOUND"

    def __init__(self, order_id: UUID, department: str) -> None:
        super().__init__(
            f"No tracking record for department {department} on order {order_id}",
            ErrorType.NOT_FOUND,
            {"order_id": str(order_id), "department": department},
        )


class InvalidDepartmentError(DomainError):
    code = "INVALID_DEPARTMENT"

    def __init__(self, department: str) -> None:
        super().__init__(
            f"Unknown department: {department}",
            ErrorType.VALIDATION,
            {"department": department},
        )


class InvalidStatusTransitionError(DomainError):
    """Raised when a status change is outside the transition table."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(
        self,
        current_status: str,
        attempted_status: str,
        department: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.current_status = current_status
        self.attempted_status = attempted_status
        target = f"department {department}" if department else "order"
        message = (
            f"Cannot transition {target} from {current_status} to {attempted_status}"
        )
        if reason:
            message = f"{message}: {reason}"
        details: dict[str, DetailValue] = {
            "current_status": current_status,
            "attempted_status": attempted_status,
        }
        if department:
            details["department"] = department
        if reason:
            details["reason"] = reason
        super().__init__(message, ErrorType.BUSINESS_RULE, details)


class PreviousDepartmentNotCompleteError(DomainError):
    code = "PREVIOUS_DEPARTMENT_NOT_COMPLETE"

    def __init__(
        self, department: str, blocking_department: str, blocking_display_name: str
    ) -> None:
        self.blocking_department = blocking_department
        super().__init__(
            f"Cannot start {department}. {blocking_display_name} must be completed first",
            ErrorType.BUSINESS_RULE,
            {
                "department": department,
                "blocking_department": blocking_department,
                "blocking_display_name": blocking_display_name,
            },
        )


class AlreadyStartedError(DomainError):
    code = "ALREADY_STARTED"

    def __init__(self, order_id: UUID, department: str) -> None:
        super().__init__(
            f"Department {department} is already in progress",
            ErrorType.CONFLICT,
            {"order_id": str(order_id), "department": department},
        )


class AlreadyCompletedError(DomainError):
    code = "ALREADY_COMPLETED"

    def __init__(self, order_id: UUID, department: str) -> None:
        super().__init__(
            f"Department {department} is already completed",
            ErrorType.CONFLICT,
            {"order_id": str(order_id), "department": department},
        )


class TrackingConflictError(DomainError):
    """Raised when a department record changed status under a concurrent transition."""

    code = "TRACKING_CONFLICT"

    def __init__(self, order_id: UUID, department: str, expected_status: str) -> None:
        super().__init__(
            f"Department {department} is no longer {expected_status}; reload and retry",
            ErrorType.CONFLICT,
            {
                "order_id": str(order_id),
                "department": department,
                "expected_status": expected_status,
            },
        )


class NotStartedError(DomainError):
    code = "NOT_STARTED"

    def __init__(self, order_id: UUID, department: str, current_status: str) -> None:
        super().__init__(
            f"Department {department} has not been started",
            ErrorType.BUSINESS_RULE,
            {
                "order_id": str(order_id),
                "department": department,
                "current_status": current_status,
            },
        )


class WorkerNotFoundError(DomainError):
    code = "WORKER_NOT_FOUND"

    def __init__(self, worker_id: UUID | None, reason: str = "") -> None:
        message = f"Worker {worker_id} not found" if worker_id else "No worker assigned"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            ErrorType.NOT_FOUND,
            {"worker_id": str(worker_id) if worker_id else None},
        )


class WorkNotAssignedError(DomainError):
    code = "WORK_NOT_ASSIGNED"

    def __init__(self, order_id: UUID, worker_id: UUID) -> None:
        super().__init__(
            f"Order {order_id} has no department assigned to worker {worker_id}",
            ErrorType.NOT_FOUND,
            {"order_id": str(order_id), "worker_id": str(worker_id)},
        )


class WorkerInactiveError(DomainError):
    code = "WORKER_INACTIVE"

    def __init__(self, worker_id: UUID) -> None:
        super().__init__(
            f"Worker {worker_id} is not active",
            ErrorType.BUSINESS_RULE,
            {"worker_id": str(worker_id)},
        )


class OrderNotInFactoryError(DomainError):
    code = "ORDER_NOT_IN_FACTORY"

    def __init__(self, order_id: UUID, current_status: str) -> None:
        super().__init__(
            f"Order {order_id} must be in factory (current status: {current_status})",
            ErrorType.BUSINESS_RULE,
            {"order_id": str(order_id), "current_status": current_status},
        )


class OrderAlreadySubmittedError(DomainError):
    code = "ORDER_ALREADY_SUBMITTED"

    def __init__(self, order_id: UUID, existing_submission_id: UUID) -> None:
        super().__init__(
            f"Order {order_id} has already been submitted",
            ErrorType.CONFLICT,
            {
                "order_id": str(order_id),
                "existing_submission_id": str(existing_submission_id),
            },
        )


class DepartmentsIncompleteError(DomainError):
    code = "DEPARTMENTS_INCOMPLETE"

    def __init__(self, order_id: UUID, incomplete_departments: list[str]) -> None:
        self.incomplete_departments = incomplete_departments
        super().__init__(
            f"{len(incomplete_departments)} department(s) not completed: "
            f"{', '.join(incomplete_departments)}",
            ErrorType.BUSINESS_RULE,
            {
                "order_id": str(order_id),
                "incomplete_departments": incomplete_departments,
            },
        )


class HighVarianceUnacknowledgedError(DomainError):
    code = "HIGH_VARIANCE_UNACKNOWLEDGED"

    def __init__(self, weight_variance: dict[str, Any]) -> None:
        super().__init__(
            f"Weight variance of {weight_variance['percentage_variance']}% exceeds "
            f"{weight_variance['alert_threshold']}%. Acknowledge to proceed",
            ErrorType.BUSINESS_RULE,
            {"weight_variance": weight_variance},
        )


class SubmissionNotFoundError(DomainError):
    code = "SUBMISSION_NOT_FOUND"

    def __init__(self, order_id: UUID) -> None:
        super().__init__(
            f"No final submission for order {order_id}",
            ErrorType.NOT_FOUND,
            {"order_id": str(order_id)},
        )


class InfrastructureError(Exception):
    """Store failure surfaced after the retry budget is spent."""

    error_type = ErrorType.INFRASTRUCTURE
    code = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.error_type.value,
            "code": self.code,
            "message": self.message,
            "details": {"operation": self.operation},
        }
