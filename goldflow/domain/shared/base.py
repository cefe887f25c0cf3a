"""Base classes for production entities, value objects and notification events."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Naive UTC timestamp, the form persisted by the tracking store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ValueObject(BaseModel):
    """Immutable, compared by value (weights, variances, reports)."""

    model_config = ConfigDict(frozen=True)


class Entity(BaseModel, ABC):
    """
    Identified, mutable domain object.

    Field assignments are validated so a state-machine method can never leave
    an entity with an out-of-range weight or unknown status.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime | None = None

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def mark_updated(self) -> None:
        self.updated_at = utc_now()

    @abstractmethod
    def is_valid(self) -> bool:
        """Cross-field consistency check (timestamps, approval state, ...)."""


class AggregateRoot(Entity, ABC):
    """Entity that owns a consistency boundary; Order is the only one."""


class DomainEvent(BaseModel):
    """Immutable record of something that happened to an aggregate."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=utc_now)
    aggregate_id: UUID
