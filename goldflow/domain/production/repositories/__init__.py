from .tracking_store import TrackingStore

__all__ = ["TrackingStore"]
