from .notifications import SYSTEM_ACTOR, Actor, NotificationEvent, WorkerRef

__all__ = ["SYSTEM_ACTOR", "Actor", "NotificationEvent", "WorkerRef"]
