from .dispatcher import NotificationDispatcher, build_dispatcher
from .sinks import (
    InMemoryNotificationHistory,
    LoggingNotificationSink,
    NotificationHistory,
    NotificationSink,
    RedisNotificationHistory,
)

__all__ = [
    "InMemoryNotificationHistory",
    "LoggingNotificationSink",
    "NotificationDispatcher",
    "NotificationHistory",
    "NotificationSink",
    "RedisNotificationHistory",
    "build_dispatcher",
]
