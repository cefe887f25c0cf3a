"""
Property-based tests for the department workflow.

Uses Hypothesis to check the sequence, weight and single-active-department
rules over generated status maps, weights and operation sequences.
"""

from hypothesis import HealthCheck, given, settings, strategies as st

from goldflow.application.dtos import CompleteDepartmentInput, StartDepartmentInput
from goldflow.application.services import DepartmentWorkflowService
from goldflow.core.config import Settings
from goldflow.domain.production.services import transition_validator as validator
from goldflow.domain.production.value_objects import sequence
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
)
from goldflow.domain.production.value_objects.weight import (
    calculate_gold_loss,
    calculate_weight_variance,
)
from goldflow.domain.shared.exceptions import DomainError
from goldflow.infrastructure.database import UnitOfWorkManager, create_db_engine, init_db
from goldflow.infrastructure.events import InMemoryNotificationHistory, NotificationDispatcher
from goldflow.tests.factories import OrderFactory, WorkerFactory

departments = st.sampled_from(sequence.DEPARTMENT_ORDER)
status_values = st.sampled_from(list(DepartmentStatus))
weights = st.floats(min_value=0.001, max_value=1000, allow_nan=False, allow_infinity=False)


@st.composite
def status_maps(draw):
    """Partial maps of department -> status, as an order's tracking would give."""
    return draw(st.dictionaries(departments, status_values, max_size=9))


@st.composite
def operations(draw, include_moves: bool = True):
    kinds = ["start", "complete", "hold", "resume"]
    if include_moves:
        kinds.append("move")
    return draw(
        st.lists(st.tuples(st.sampled_from(kinds), departments), min_size=1, max_size=25)
    )


def build_workflow() -> tuple[DepartmentWorkflowService, UnitOfWorkManager]:
    config = Settings(DATABASE_URL="sqlite://", ENABLE_METRICS=False, LOG_FORMAT="console")
    engine = create_db_engine("sqlite://", config)
    init_db(engine)
    manager = UnitOfWorkManager(engine)
    dispatcher = NotificationDispatcher([InMemoryNotificationHistory()])
    return DepartmentWorkflowService(manager, dispatcher, config), manager


def apply(workflow: DepartmentWorkflowService, order_id, kind: str, department: DepartmentName):
    """Run one operation; rejected operations leave state untouched."""
    try:
        if kind == "start":
            workflow.start_department(order_id, department, StartDepartmentInput())
        elif kind == "complete":
            workflow.complete_department(
                order_id, department, CompleteDepartmentInput(gold_weight_out=9.5)
            )
        elif kind == "hold":
            workflow.put_on_hold(order_id, department, "Held by property test")
        elif kind == "resume":
            workflow.resume_department(order_id, department)
        else:
            workflow.move_to_department(order_id, department)
    except DomainError:
        pass


def current_statuses(manager: UnitOfWorkManager, order_id) -> list[DepartmentStatus]:
    with manager.transaction() as uow:
        return [record.status for record in uow.store.list_tracking(order_id)]


class TestSequenceProperties:
    """Pure properties of the sequence prerequisites and derived status."""

    @given(status_maps(), departments)
    def test_start_allowed_iff_all_predecessors_completed(self, statuses, department):
        check = validator.can_start_department(department, statuses)
        preceding = sequence.preceding_departments(department)

        expected = all(statuses.get(d) == DepartmentStatus.COMPLETED for d in preceding)
        assert check.allowed == expected
        if not check.allowed:
            blocking_index = sequence.index_of(check.blocking_department)
            assert statuses.get(check.blocking_department) != DepartmentStatus.COMPLETED
            assert all(
                statuses.get(d) == DepartmentStatus.COMPLETED
                for d in preceding[:blocking_index]
            )

    @given(status_maps(), st.booleans(), st.booleans())
    def test_completed_only_with_terminal_department_and_submission(
        self, statuses, has_submission, sent
    ):
        derived = validator.derive_order_status(statuses, has_submission, sent)

        terminal_done = statuses.get(sequence.LAST_DEPARTMENT) == DepartmentStatus.COMPLETED
        assert (derived == OrderStatus.COMPLETED) == (terminal_done and has_submission)
        if sent and derived != OrderStatus.COMPLETED:
            assert derived == OrderStatus.IN_FACTORY


class TestWeightProperties:
    @given(weights, weights)
    def test_gold_loss_is_rounded_difference(self, weight_in, weight_out):
        loss = calculate_gold_loss(weight_in, weight_out)

        assert abs(loss - (weight_in - weight_out)) <= 0.0005 + 1e-9
        assert round(loss, 3) == loss

    @given(weights, weights, st.floats(min_value=0.1, max_value=50))
    def test_variance_flag_matches_threshold(self, initial, final, threshold):
        variance = calculate_weight_variance(initial, final, threshold)

        assert variance.percentage_variance >= 0
        assert variance.is_high_variance == (variance.percentage_variance > threshold)


class TestWorkflowInvariants:
    """Random operation sequences against a real store."""

    @settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    @given(operations(include_moves=True))
    def test_at_most_one_department_in_progress(self, ops):
        workflow, manager = build_workflow()
        with manager.transaction() as uow:
            order = uow.store.create_order(OrderFactory.create())
            uow.store.create_worker(WorkerFactory.create(DepartmentName.CASTING))
        workflow.send_to_factory(order.id)

        for kind, department in ops:
            apply(workflow, order.id, kind, department)
            current = current_statuses(manager, order.id)
            assert current.count(DepartmentStatus.IN_PROGRESS) <= 1

    @settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    @given(operations(include_moves=False))
    def test_completed_departments_form_a_prefix(self, ops):
        workflow, manager = build_workflow()
        with manager.transaction() as uow:
            order = uow.store.create_order(OrderFactory.create())
        workflow.send_to_factory(order.id)

        for kind, department in ops:
            apply(workflow, order.id, kind, department)

        final = current_statuses(manager, order.id)
        completed = [status == DepartmentStatus.COMPLETED for status in final]
        done = completed.count(True)
        assert completed == [True] * done + [False] * (len(completed) - done)
