"""
State Transition Validator

Pure checks over an order's department statuses: sequence prerequisites,
the status transition table, the single-active-department rule, and the
derived order status.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from ...shared.exceptions import (
    InvalidStatusTransitionError,
    PreviousDepartmentNotCompleteError,
)
from ..entities.order import Order
from ..entities.tracking import DepartmentTracking
from ..value_objects import sequence
from ..value_objects.enums import DepartmentName, DepartmentStatus, OrderStatus

StatusMap = Mapping[DepartmentName, DepartmentStatus]


@dataclass(frozen=True)
class StartCheck:
    allowed: bool
    blocking_department: DepartmentName | None = None


def status_map(records: Iterable[DepartmentTracking]) -> dict[DepartmentName, DepartmentStatus]:
    return {record.department_name: record.status for record in records}


def can_start_department(department: DepartmentName, statuses: StatusMap) -> StartCheck:
    """
    Allowed iff every earlier department is COMPLETED.

    Departments without a tracking record count as incomplete. The first
    blocking department in sequence order is reported.
    """
    for earlier in sequence.preceding_departments(department):
        if statuses.get(earlier) != DepartmentStatus.COMPLETED:
            return StartCheck(allowed=False, blocking_department=earlier)
    return StartCheck(allowed=True)


def ensure_can_start(department: DepartmentName, statuses: StatusMap) -> None:
    blocking = can_start_department(department, statuses).blocking_department
    if blocking is not None:
        raise PreviousDepartmentNotCompleteError(
            department.value, blocking.value, sequence.display_name(blocking)
        )


def is_valid_transition(current: DepartmentStatus, target: DepartmentStatus) -> bool:
    return current.can_transition_to(target)


def active_department(statuses: StatusMap) -> DepartmentName | None:
    """The department currently IN_PROGRESS, if any."""
    for department in sequence.DEPARTMENT_ORDER:
        if statuses.get(department) == DepartmentStatus.IN_PROGRESS:
            return department
    return None


def ensure_no_other_active(department: DepartmentName, statuses: StatusMap) -> None:
    """At most one department of an order may be IN_PROGRESS."""
    active = active_department(statuses)
    if active is not None and active != department:
        current = statuses.get(department, DepartmentStatus.NOT_STARTED)
        raise InvalidStatusTransitionError(
            current.value,
            DepartmentStatus.IN_PROGRESS.value,
            department.value,
            f"{sequence.display_name(active)} is already in progress",
        )


def incomplete_departments(statuses: StatusMap) -> list[DepartmentName]:
    return [
        department
        for department in sequence.DEPARTMENT_ORDER
        if statuses.get(department) != DepartmentStatus.COMPLETED
    ]


def current_department(statuses: StatusMap) -> DepartmentName | None:
    """The IN_PROGRESS department, else the first one still waiting or held."""
    active = active_department(statuses)
    if active is not None:
        return active
    for department in sequence.DEPARTMENT_ORDER:
        status = statuses.get(department)
        if status is not None and status != DepartmentStatus.COMPLETED:
            return department
    return None


def derive_order_status(
    statuses: StatusMap, has_submission: bool, sent_to_factory: bool
) -> OrderStatus:
    """Single source of truth for an order's status."""
    if statuses.get(sequence.LAST_DEPARTMENT) == DepartmentStatus.COMPLETED and has_submission:
        return OrderStatus.COMPLETED
    if sent_to_factory or any(
        status.is_active or status == DepartmentStatus.COMPLETED
        for status in statuses.values()
    ):
        return OrderStatus.IN_FACTORY
    return OrderStatus.DRAFT


def refresh_order_status(
    order: Order,
    records: Iterable[DepartmentTracking],
    has_submission: bool,
    at: datetime | None = None,
) -> bool:
    """Recompute and apply the derived status. Returns True if it changed."""
    derived = derive_order_status(
        status_map(records), has_submission, order.sent_to_factory_at is not None
    )
    return order.apply_status(derived, at)
