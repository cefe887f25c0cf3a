"""Domain enums for the production floor."""

from enum import Enum

from goldflow.domain.shared.exceptions import InvalidDepartmentError


class DepartmentName(str, Enum):
    """Factory departments, declared in production order."""

    CAD = "CAD"
    PRINT = "PRINT"
    CASTING = "CASTING"
    FILLING = "FILLING"
    MEENA = "MEENA"
    POLISH_1 = "POLISH_1"
    SETTING = "SETTING"
    POLISH_2 = "POLISH_2"
    ADDITIONAL = "ADDITIONAL"

    @classmethod
    def parse(cls, value: "str | DepartmentName") -> "DepartmentName":
        """Resolve a raw identifier, raising InvalidDepartmentError if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError as e:
            raise InvalidDepartmentError(str(value)) from e


class DepartmentStatus(str, Enum):
    """Department tracking status enumeration."""

    PENDING_ASSIGNMENT = "PENDING_ASSIGNMENT"
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"

    @property
    def is_active(self) -> bool:
        """Work has begun and not yet finished."""
        return self in {DepartmentStatus.IN_PROGRESS, DepartmentStatus.ON_HOLD}

    @property
    def is_waiting(self) -> bool:
        return self in {DepartmentStatus.PENDING_ASSIGNMENT, DepartmentStatus.NOT_STARTED}

    @property
    def is_terminal(self) -> bool:
        return self == DepartmentStatus.COMPLETED

    def can_transition_to(self, target_status: "DepartmentStatus") -> bool:
        """Check the fixed transition table."""
        return target_status in DEPARTMENT_TRANSITIONS[self]


DEPARTMENT_TRANSITIONS: dict[DepartmentStatus, frozenset[DepartmentStatus]] = {
    DepartmentStatus.PENDING_ASSIGNMENT: frozenset({DepartmentStatus.NOT_STARTED}),
    DepartmentStatus.NOT_STARTED: frozenset({DepartmentStatus.IN_PROGRESS}),
    DepartmentStatus.IN_PROGRESS: frozenset(
        {DepartmentStatus.COMPLETED, DepartmentStatus.ON_HOLD}
    ),
    DepartmentStatus.ON_HOLD: frozenset({DepartmentStatus.IN_PROGRESS}),
    DepartmentStatus.COMPLETED: frozenset(),  # Terminal state
}


class OrderStatus(str, Enum):
    """Order lifecycle status. Derived from tracking, never set ad hoc."""

    DRAFT = "DRAFT"
    IN_FACTORY = "IN_FACTORY"
    COMPLETED = "COMPLETED"


class NotificationType(str, Enum):
    DEPARTMENT_STARTED = "DEPARTMENT_STARTED"
    DEPARTMENT_COMPLETED = "DEPARTMENT_COMPLETED"
    DEPARTMENT_ON_HOLD = "DEPARTMENT_ON_HOLD"
    WORKER_ASSIGNED = "WORKER_ASSIGNED"
    ORDER_SUBMITTED = "ORDER_SUBMITTED"
    HIGH_VARIANCE_ALERT = "HIGH_VARIANCE_ALERT"


class QualityGrade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C = "C"
    D = "D"
