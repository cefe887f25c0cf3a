"""
Notification events and the emitter that builds them.

The emitter is pure: it turns workflow facts into event records. Delivery
(history, push, email) belongs to the dispatcher in the infrastructure layer.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ...shared.base import DomainEvent
from ..entities.order import Order
from ..entities.submission import FinalSubmission
from ..entities.worker import Worker
from ..value_objects import sequence
from ..value_objects.enums import DepartmentName, NotificationType


class Actor(BaseModel):
    """Who triggered a transition."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


SYSTEM_ACTOR = Actor(id="system", name="System")


class WorkerRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str


class NotificationEvent(DomainEvent):
    """Typed notification record; aggregate_id is the order id."""

    type: NotificationType
    order_number: str
    message: str
    triggered_by: Actor = SYSTEM_ACTOR
    department_name: DepartmentName | None = None
    display_name: str | None = None
    assigned_to: WorkerRef | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def order_id(self) -> UUID:
        return self.aggregate_id

    @property
    def timestamp(self) -> datetime:
        return self.occurred_at

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json") | {"order_id": str(self.aggregate_id)}


def _department_event(
    event_type: NotificationType,
    order: Order,
    department: DepartmentName,
    message: str,
    actor: Actor | None,
    **extra: Any,
) -> NotificationEvent:
    return NotificationEvent(
        type=event_type,
        aggregate_id=order.id,
        order_number=order.order_number,
        department_name=department,
        display_name=sequence.display_name(department),
        message=message,
        triggered_by=actor or SYSTEM_ACTOR,
        **extra,
    )


def department_started(
    order: Order, department: DepartmentName, actor: Actor | None = None
) -> NotificationEvent:
    return _department_event(
        NotificationType.DEPARTMENT_STARTED,
        order,
        department,
        f"{sequence.display_name(department)} has started for order {order.order_number}",
        actor,
    )


def department_completed(
    order: Order,
    department: DepartmentName,
    actor: Actor | None = None,
    gold_loss: float | None = None,
) -> NotificationEvent:
    return _department_event(
        NotificationType.DEPARTMENT_COMPLETED,
        order,
        department,
        f"{sequence.display_name(department)} completed for order {order.order_number}",
        actor,
        data={"gold_loss": gold_loss} if gold_loss is not None else {},
    )


def department_on_hold(
    order: Order, department: DepartmentName, reason: str, actor: Actor | None = None
) -> NotificationEvent:
    return _department_event(
        NotificationType.DEPARTMENT_ON_HOLD,
        order,
        department,
        f"{sequence.display_name(department)} is on hold for order "
        f"{order.order_number}: {reason}",
        actor,
        data={"reason": reason},
    )


def worker_assigned(
    order: Order,
    department: DepartmentName,
    worker: Worker,
    actor: Actor | None = None,
    automatic: bool = True,
) -> NotificationEvent:
    return _department_event(
        NotificationType.WORKER_ASSIGNED,
        order,
        department,
        f"{worker.name} assigned to {sequence.display_name(department)} "
        f"for order {order.order_number}",
        actor,
        assigned_to=WorkerRef(id=worker.id, name=worker.name),
        data={"automatic": automatic},
    )


def order_submitted(
    order: Order, submission: FinalSubmission, actor: Actor | None = None
) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.ORDER_SUBMITTED,
        aggregate_id=order.id,
        order_number=order.order_number,
        message=f"Order {order.order_number} submitted with final weight "
        f"{submission.final_gold_weight}g",
        triggered_by=actor or SYSTEM_ACTOR,
        data={
            "submission_id": str(submission.id),
            "auto_submitted": submission.auto_submitted,
        },
    )


def high_variance_alert(
    order: Order, submission: FinalSubmission, actor: Actor | None = None
) -> NotificationEvent:
    variance = submission.weight_variance
    return NotificationEvent(
        type=NotificationType.HIGH_VARIANCE_ALERT,
        aggregate_id=order.id,
        order_number=order.order_number,
        message=f"High weight variance of {variance.percentage_variance}% on order "
        f"{order.order_number}",
        triggered_by=actor or SYSTEM_ACTOR,
        data={"weight_variance": variance.model_dump(mode="json")},
    )
