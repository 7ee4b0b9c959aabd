"""
Event system for dashstore.
"""

from .events import (
    Event,
    EventType,
    EventHandler,
    EventBus,
)

__all__ = [
    "Event",
    "EventType",
    "EventHandler",
    "EventBus",
]
