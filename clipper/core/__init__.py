"""Transport-facing infrastructure."""

from .queues import BoundedQueue, OverflowPolicy

__all__ = ["BoundedQueue", "OverflowPolicy"]
