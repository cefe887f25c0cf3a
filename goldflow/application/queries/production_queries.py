"""Read models over the production floor."""

from uuid import UUID

from goldflow.domain.production.repositories import TrackingStore
from goldflow.domain.production.services import transition_validator as validator
from goldflow.domain.production.value_objects import sequence
from goldflow.domain.production.value_objects.enums import (
    DepartmentName,
    DepartmentStatus,
    OrderStatus,
)
from goldflow.domain.shared.exceptions import OrderNotFoundError, TrackingNotFoundError

from ..dtos.workflow_dtos import (
    DepartmentLoad,
    FactoryStats,
    OrderDepartmentsSummary,
    TrackingResponse,
)
from ..services.base_service import ApplicationServiceBase


class ProductionQueries(ApplicationServiceBase):
    """Department progress, factory load and worker queue lookups."""

    def get_order_departments(self, order_id: UUID) -> OrderDepartmentsSummary:
        return self._run(
            "get_order_departments", lambda store: self._order_departments(store, order_id)
        )

    def get_department_tracking(
        self, order_id: UUID, department: str | DepartmentName
    ) -> TrackingResponse:
        name = self.parse_department(department)

        def load(store: TrackingStore) -> TrackingResponse:
            tracking = store.get_tracking(order_id, name)
            if tracking is None:
                raise TrackingNotFoundError(order_id, name.value)
            return TrackingResponse.from_entity(tracking)

        return self._run("get_department_tracking", load)

    def get_factory_stats(self) -> FactoryStats:
        return self._run("get_factory_stats", self._factory_stats)

    def get_pending_assignments_count(self, worker_id: UUID) -> int:
        return self._run(
            "get_pending_assignments_count",
            lambda store: self._assignment_service(store).get_pending_assignments_count(
                worker_id
            ),
        )

    @staticmethod
    def _order_departments(store: TrackingStore, order_id: UUID) -> OrderDepartmentsSummary:
        order = store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        records = store.list_tracking(order_id)
        statuses = validator.status_map(records)
        completed = sum(1 for status in statuses.values() if status == DepartmentStatus.COMPLETED)
        estimated = sum(record.estimated_hours or 0.0 for record in records)
        actual = sum(record.duration_hours or 0.0 for record in records)

        return OrderDepartmentsSummary(
            order_id=order.id,
            order_number=order.order_number,
            order_status=order.status,
            total_departments=sequence.TOTAL_DEPARTMENTS,
            completed_departments=completed,
            current_department=validator.current_department(statuses),
            completion_percentage=round(completed / sequence.TOTAL_DEPARTMENTS * 100),
            total_estimated_hours=round(estimated, 2),
            total_actual_hours=round(actual, 2) if actual > 0 else None,
            departments=[TrackingResponse.from_entity(record) for record in records],
        )

    @staticmethod
    def _factory_stats(store: TrackingStore) -> FactoryStats:
        in_factory = store.list_orders(OrderStatus.IN_FACTORY)
        load: dict[DepartmentName, list[float]] = {}
        total_loss = 0.0

        for order in store.list_orders():
            records = store.list_tracking(order.id)
            total_loss += sum(record.gold_loss or 0.0 for record in records)
            if order.status != OrderStatus.IN_FACTORY:
                continue
            current = validator.current_department(validator.status_map(records))
            if current is None:
                continue
            record = next(r for r in records if r.department_name == current)
            weight = (
                record.gold_weight_in
                if record.gold_weight_in is not None
                else order.initial_gold_weight
            )
            load.setdefault(current, []).append(weight)

        return FactoryStats(
            orders_in_factory=len(in_factory),
            total_gold_in_factory=round(sum(o.initial_gold_weight for o in in_factory), 3),
            total_gold_loss=round(total_loss, 3),
            orders_by_department=[
                DepartmentLoad(
                    department=department,
                    display_name=sequence.display_name(department),
                    order_count=len(load[department]),
                    gold_weight=round(sum(load[department]), 3),
                )
                for department in sequence.DEPARTMENT_ORDER
                if department in load
            ],
        )
