"""Tests for the production read models."""

import pytest

from goldflow.application.dtos import (
    AssignWorkerInput,
    CompleteDepartmentInput,
    StartDepartmentInput,
)
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
)
from goldflow.domain.shared.exceptions import (
    InvalidDepartmentError,
    OrderNotFoundError,
)
from goldflow.tests.factories import OrderFactory

D = DepartmentName


class TestOrderDepartmentsSummary:
    def test_progress_after_first_department(self, workflow, queries, add_order, clock):
        order = add_order(order_number="ORD-2001")
        workflow.send_to_factory(order.id)
        workflow.start_department(
            order.id, D.CAD, StartDepartmentInput(gold_weight_in=10.0, estimated_hours=3)
        )
        clock.advance(hours=2)
        workflow.complete_department(
            order.id, D.CAD, CompleteDepartmentInput(gold_weight_out=9.98)
        )

        summary = queries.get_order_departments(order.id)

        assert summary.order_number == "ORD-2001"
        assert summary.order_status == OrderStatus.IN_FACTORY
        assert summary.total_departments == 9
        assert summary.completed_departments == 1
        assert summary.completion_percentage == 11
        assert summary.current_department == D.PRINT
        assert summary.total_estimated_hours == 3.0
        assert summary.total_actual_hours == 2.0
        assert [d.department_name for d in summary.departments][:2] == [D.CAD, D.PRINT]
        assert summary.departments[0].duration_hours == 2.0
        assert summary.departments[1].gold_weight_in == 9.98

    def test_fresh_order_has_no_actual_hours(self, workflow, queries, add_order):
        order = add_order()
        workflow.send_to_factory(order.id)

        summary = queries.get_order_departments(order.id)

        assert summary.completion_percentage == 0
        assert summary.total_actual_hours is None
        assert summary.current_department == D.CAD

    def test_unknown_order(self, queries):
        with pytest.raises(OrderNotFoundError):
            queries.get_order_departments(OrderFactory.create().id)


class TestDepartmentTrackingLookup:
    def test_lookup_by_raw_name(self, workflow, queries, add_order):
        order = add_order()
        workflow.send_to_factory(order.id)

        tracking = queries.get_department_tracking(order.id, "print")

        assert tracking.department_name == D.PRINT
        assert tracking.display_name == "3D Printing"
        assert tracking.sequence_index == 2
        assert tracking.status == DepartmentStatus.NOT_STARTED

    def test_unknown_department(self, queries, add_order):
        order = add_order()
        with pytest.raises(InvalidDepartmentError):
            queries.get_department_tracking(order.id, "ENAMEL")


class TestFactoryStats:
    def test_load_by_department(self, workflow, queries, add_order):
        at_cad = add_order(initial_gold_weight=10.0)
        at_print = add_order(initial_gold_weight=10.0)
        add_order(initial_gold_weight=50.0)
        workflow.send_to_factory(at_cad.id)
        workflow.send_to_factory(at_print.id)
        workflow.start_department(at_print.id, D.CAD, StartDepartmentInput(gold_weight_in=10.0))
        workflow.complete_department(
            at_print.id, D.CAD, CompleteDepartmentInput(gold_weight_out=9.98)
        )

        stats = queries.get_factory_stats()

        assert stats.orders_in_factory == 2
        assert stats.total_gold_in_factory == 20.0
        assert stats.total_gold_loss == 0.02
        loads = {load.department: load for load in stats.orders_by_department}
        assert set(loads) == {D.CAD, D.PRINT}
        assert loads[D.CAD].order_count == 1
        assert loads[D.CAD].gold_weight == 10.0
        assert loads[D.PRINT].gold_weight == 9.98
        assert loads[D.PRINT].display_name == "3D Printing"


class TestPendingAssignments:
    def test_counts_waiting_and_active_work(self, workflow, queries, add_order, add_worker):
        worker = add_worker(D.CAD)
        started = add_order()
        workflow.send_to_factory(started.id)
        assigned = add_order()
        workflow.assign_worker(assigned.id, D.CAD, AssignWorkerInput(worker_id=worker.id))

        assert queries.get_pending_assignments_count(worker.id) == 2
