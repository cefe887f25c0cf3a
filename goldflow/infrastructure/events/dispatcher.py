"""
Notification dispatcher.

Delivers the events produced by a committed workflow operation to every
registered sink. Delivery failures are logged and counted, never raised: a
notification problem must not fail the state transition that produced it.
"""

import logging
from collections.abc import Iterable

from goldflow.core.config import Settings, get_settings
from goldflow.core.observability import record_notification_failure
from goldflow.domain.production.events import NotificationEvent

from .sinks import (
    InMemoryNotificationHistory,
    LoggingNotificationSink,
    NotificationHistory,
    NotificationSink,
    RedisNotificationHistory,
)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fans notification events out to sinks."""

    def __init__(self, sinks: Iterable[NotificationSink] | None = None):
        self._sinks: list[NotificationSink] = list(sinks or [])

    @property
    def sinks(self) -> list[NotificationSink]:
        return list(self._sinks)

    def register(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def history(self) -> NotificationHistory | None:
        """First registered sink able to answer recent-notification queries."""
        for sink in self._sinks:
            if isinstance(sink, NotificationHistory):
                return sink
        return None

    def dispatch(self, events: Iterable[NotificationEvent]) -> int:
        """Deliver events in order. Returns the number of failed deliveries."""
        failures = 0
        for event in events:
            for sink in self._sinks:
                try:
                    sink.deliver(event)
                except Exception as e:
                    failures += 1
                    record_notification_failure(event.type.value)
                    logger.error(
                        f"Notification {event.type.value} for order {event.order_number} "
                        f"not delivered to {sink.name} sink: {str(e)}"
                    )
        return failures


def build_dispatcher(settings: Settings | None = None) -> NotificationDispatcher:
    """Default sinks: history (Redis when configured, else in-memory) and log."""
    settings = settings or get_settings()
    if settings.REDIS_URL:
        history: NotificationHistory = RedisNotificationHistory.from_url(
            settings.REDIS_URL,
            key=settings.REDIS_NOTIFICATION_KEY,
            max_size=settings.NOTIFICATION_HISTORY_SIZE,
        )
    else:
        history = InMemoryNotificationHistory(settings.NOTIFICATION_HISTORY_SIZE)
    return NotificationDispatcher([history, LoggingNotificationSink()])
