"""Tests for sequence prerequisites, the transition table and derived order status."""

import pytest

from goldflow.domain.production.services import transition_validator as validator
from goldflow.domain.production.value_objects import sequence
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
)
from goldflow.domain.shared.exceptions import (
    InvalidStatusTransitionError,
    PreviousDepartmentNotCompleteError,
)
from goldflow.tests.factories import OrderFactory, TrackingFactory

S = DepartmentStatus
D = DepartmentName


def completed_through(last: DepartmentName) -> dict[DepartmentName, DepartmentStatus]:
    """Every department up to and including `last` completed, the rest not started."""
    cutoff = sequence.index_of(last)
    return {
        department: S.COMPLETED if i <= cutoff else S.NOT_STARTED
        for i, department in enumerate(sequence.DEPARTMENT_ORDER)
    }


class TestCanStartDepartment:
    def test_first_department_always_allowed(self):
        check = validator.can_start_department(D.CAD, {})
        assert check.allowed
        assert check.blocking_department is None

    def test_blocked_by_first_incomplete_predecessor(self):
        statuses = {D.CAD: S.COMPLETED, D.PRINT: S.IN_PROGRESS, D.CASTING: S.NOT_STARTED}

        check = validator.can_start_department(D.FILLING, statuses)

        assert not check.allowed
        assert check.blocking_department == D.PRINT

    def test_missing_predecessor_record_blocks(self):
        check = validator.can_start_department(D.CASTING, {D.CAD: S.COMPLETED})
        assert check.blocking_department == D.PRINT

    def test_allowed_when_all_predecessors_completed(self):
        assert validator.can_start_department(D.MEENA, completed_through(D.FILLING)).allowed

    def test_ensure_can_start_raises_with_display_name(self):
        with pytest.raises(PreviousDepartmentNotCompleteError) as exc_info:
            validator.ensure_can_start(D.PRINT, {D.CAD: S.ON_HOLD})

        error = exc_info.value
        assert error.blocking_department == "CAD"
        assert error.details["blocking_display_name"] == "CAD Design"
        assert "CAD Design must be completed first" in error.message


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target",
        [
            (S.PENDING_ASSIGNMENT, S.NOT_STARTED),
            (S.NOT_STARTED, S.IN_PROGRESS),
            (S.IN_PROGRESS, S.COMPLETED),
            (S.IN_PROGRESS, S.ON_HOLD),
            (S.ON_HOLD, S.IN_PROGRESS),
        ],
    )
    def test_allowed(self, current, target):
        assert validator.is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.NOT_STARTED, S.COMPLETED),
            (S.NOT_STARTED, S.ON_HOLD),
            (S.PENDING_ASSIGNMENT, S.IN_PROGRESS),
            (S.ON_HOLD, S.COMPLETED),
            (S.COMPLETED, S.IN_PROGRESS),
            (S.COMPLETED, S.NOT_STARTED),
        ],
    )
    def test_rejected(self, current, target):
        assert not validator.is_valid_transition(current, target)

    def test_completed_is_terminal(self):
        assert S.COMPLETED.is_terminal
        assert not any(S.COMPLETED.can_transition_to(s) for s in DepartmentStatus)


class TestSingleActiveDepartment:
    def test_active_department(self):
        assert validator.active_department({D.CAD: S.COMPLETED, D.PRINT: S.IN_PROGRESS}) == D.PRINT
        assert validator.active_department({D.CAD: S.ON_HOLD}) is None

    def test_other_active_department_rejected(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validator.ensure_no_other_active(D.CASTING, {D.PRINT: S.IN_PROGRESS})

        assert "3D Printing is already in progress" in exc_info.value.message

    def test_same_department_is_not_a_conflict(self):
        validator.ensure_no_other_active(D.PRINT, {D.PRINT: S.IN_PROGRESS})


class TestCurrentDepartment:
    def test_prefers_in_progress(self):
        statuses = {D.CAD: S.COMPLETED, D.PRINT: S.IN_PROGRESS, D.CASTING: S.NOT_STARTED}
        assert validator.current_department(statuses) == D.PRINT

    def test_held_department_is_still_current(self):
        statuses = {D.CAD: S.COMPLETED, D.PRINT: S.ON_HOLD, D.CASTING: S.NOT_STARTED}
        assert validator.current_department(statuses) == D.PRINT

    def test_none_when_everything_completed(self):
        assert validator.current_department(completed_through(D.ADDITIONAL)) is None

    def test_incomplete_departments(self):
        assert validator.incomplete_departments(completed_through(D.SETTING)) == [
            D.POLISH_2,
            D.ADDITIONAL,
        ]


class TestDeriveOrderStatus:
    def test_draft_without_activity(self):
        statuses = {d: S.NOT_STARTED for d in sequence.DEPARTMENT_ORDER}
        assert validator.derive_order_status(statuses, False, False) == OrderStatus.DRAFT

    def test_in_factory_once_sent(self):
        assert validator.derive_order_status({}, False, True) == OrderStatus.IN_FACTORY

    def test_in_factory_when_any_department_active(self):
        assert (
            validator.derive_order_status({D.CAD: S.ON_HOLD}, False, False)
            == OrderStatus.IN_FACTORY
        )

    def test_completed_requires_submission(self):
        statuses = completed_through(D.ADDITIONAL)
        assert validator.derive_order_status(statuses, False, True) == OrderStatus.IN_FACTORY
        assert validator.derive_order_status(statuses, True, True) == OrderStatus.COMPLETED

    def test_refresh_applies_and_reports_change(self):
        order = OrderFactory.create()
        records = [TrackingFactory.create(order.id, D.CAD, S.IN_PROGRESS)]

        assert validator.refresh_order_status(order, records, has_submission=False)
        assert order.status == OrderStatus.IN_FACTORY
        assert order.sent_to_factory_at is not None
        assert not validator.refresh_order_status(order, records, has_submission=False)
