"""
Notification delivery sinks.

A sink receives every dispatched notification. Sinks are injected into the
dispatcher; none of them keeps module-global state.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections import deque
from threading import Lock
from typing import Any
from uuid import UUID

import redis

from goldflow.core.observability import get_logger
from goldflow.domain.production.events import NotificationEvent

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50


class NotificationSink(ABC):
    """Delivery target for notification events."""

    name = "sink"

    @abstractmethod
    def deliver(self, event: NotificationEvent) -> None:
        """Deliver one event. Implementations may raise; the dispatcher logs it."""


class NotificationHistory(NotificationSink, ABC):
    """A sink that can also answer "what happened recently"."""

    @abstractmethod
    def recent(
        self, limit: int = 20, order_id: UUID | None = None
    ) -> list[dict[str, Any]]:
        """Most recent notification payloads, newest first."""


class InMemoryNotificationHistory(NotificationHistory):
    """Bounded in-process history, newest first."""

    name = "memory"

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        self._events: deque[NotificationEvent] = deque(maxlen=max_size)
        self._lock = Lock()

    def deliver(self, event: NotificationEvent) -> None:
        with self._lock:
            self._events.appendleft(event)

    def recent(
        self, limit: int = 20, order_id: UUID | None = None
    ) -> list[dict[str, Any]]:
        with self._lock:
            events = list(self._events)
        if order_id is not None:
            events = [event for event in events if event.order_id == order_id]
        return [event.to_payload() for event in events[:limit]]

    def events(self) -> list[NotificationEvent]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class LoggingNotificationSink(NotificationSink):
    """Writes every notification to the structured log."""

    name = "log"

    def __init__(self) -> None:
        self._logger = get_logger("goldflow.notifications")

    def deliver(self, event: NotificationEvent) -> None:
        self._logger.info(
            "notification",
            type=event.type.value,
            order_id=str(event.order_id),
            order_number=event.order_number,
            department=event.department_name.value if event.department_name else None,
            message=event.message,
        )


class RedisNotificationHistory(NotificationHistory):
    """History kept in a capped Redis list, shared by every process."""

    name = "redis"

    def __init__(
        self,
        client: redis.Redis,
        key: str = "goldflow:notifications",
        max_size: int = DEFAULT_HISTORY_SIZE,
    ):
        self._client = client
        self._key = key
        self._max_size = max_size

    @classmethod
    def from_url(
        cls,
        url: str,
        key: str = "goldflow:notifications",
        max_size: int = DEFAULT_HISTORY_SIZE,
    ) -> "RedisNotificationHistory":
        return cls(redis.Redis.from_url(url, decode_responses=True), key, max_size)

    def deliver(self, event: NotificationEvent) -> None:
        payload = json.dumps(event.to_payload(), default=str)
        pipeline = self._client.pipeline()
        pipeline.lpush(self._key, payload)
        pipeline.ltrim(self._key, 0, self._max_size - 1)
        pipeline.execute()

    def recent(
        self, limit: int = 20, order_id: UUID | None = None
    ) -> list[dict[str, Any]]:
        try:
            raw = self._client.lrange(self._key, 0, self._max_size - 1)
        except redis.RedisError as e:
            logger.error(f"Notification history read failed: {e}")
            return []

        payloads = []
        for item in raw:
            try:
                payload = json.loads(item)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed notification payload")
                continue
            if order_id is not None and payload.get("order_id") != str(order_id):
                continue
            payloads.append(payload)
            if len(payloads) >= limit:
                break
        return payloads
