"""Order aggregate root."""

from datetime import datetime

from pydantic import Field

from ...shared.base import AggregateRoot, utc_now
from ..value_objects.enums import DepartmentName, OrderStatus


class Order(AggregateRoot):
    """
    A jewelry order travelling through the factory.

    Status is derived from the tracking records (see
    transition_validator.derive_order_status) and only applied through
    apply_status by the workflow service.
    """

    order_number: str = Field(min_length=1, max_length=50)
    customer_name: str | None = Field(default=None, max_length=100)
    status: OrderStatus = OrderStatus.DRAFT
    initial_gold_weight: float = Field(ge=0)
    purity: float | None = Field(default=None, ge=1, le=24)
    quantity: int = Field(default=1, ge=1)
    current_department: DepartmentName | None = None
    sent_to_factory_at: datetime | None = None
    completed_at: datetime | None = None

    def is_valid(self) -> bool:
        if self.status == OrderStatus.COMPLETED and self.completed_at is None:
            return False
        return self.initial_gold_weight >= 0

    @property
    def is_in_factory(self) -> bool:
        return self.status == OrderStatus.IN_FACTORY

    def apply_status(self, status: OrderStatus, at: datetime | None = None) -> bool:
        """Apply a derived status. Returns True if it changed."""
        if status == self.status:
            return False
        at = at or utc_now()
        if status == OrderStatus.IN_FACTORY and self.sent_to_factory_at is None:
            self.sent_to_factory_at = at
        if status == OrderStatus.COMPLETED:
            self.completed_at = at
            self.current_department = None
        self.status = status
        self.mark_updated()
        return True
