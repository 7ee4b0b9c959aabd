"""
Event publishing for the session lifecycle.

Events are dispatched synchronously, in subscription order, on the
caller's task. Handlers never see partially applied state because every
publish happens after the state change it announces.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List

from ..common.utils import get_current_time


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Typed event types."""

    CREDENTIAL_SET = "credential_set"
    CREDENTIAL_CLEARED = "credential_cleared"
    SESSION_EXPIRED = "session_expired"
    LOGIN = "login"
    LOGOUT = "logout"


@dataclass
class Event:
    """
    Event structure.

    Attributes:
        id: Unique event identifier
        type: Event type from EventType enum
        source: Component that generated the event
        timestamp: When the event occurred
        metadata: Additional event-specific data
    """

    type: EventType
    source: str = "dashstore"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=get_current_time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary representation."""
        return {
            "id": self.id,
            "type": self.type.value,
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class EventHandler:
    """Base class for event handlers."""

    def handle(self, event: Event) -> None:
        """Handle an event. Override in subclasses."""
        pass


class EventBus:
    """
    Event bus for publishing and subscribing to events.

    Handlers may be EventHandler instances or plain callables taking the
    event. A failing handler is logged and does not stop delivery to the
    remaining handlers.
    """

    def __init__(self):
        self._handlers: Dict[EventType, List[Callable[[Event], None]]] = {}

    def subscribe(self, event_type: EventType, handler: Any) -> Callable[[], None]:
        """
        Subscribe a handler to an event type.

        Args:
            event_type: Event type to listen for
            handler: EventHandler instance or callable

        Returns:
            Function that removes the subscription
        """
        callback = handler.handle if isinstance(handler, EventHandler) else handler
        self._handlers.setdefault(event_type, []).append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(event_type, callback)

        return unsubscribe

    def unsubscribe(self, event_type: EventType, handler: Any) -> None:
        """Unsubscribe a handler from an event type."""
        callback = handler.handle if isinstance(handler, EventHandler) else handler
        handlers = self._handlers.get(event_type, [])
        try:
            handlers.remove(callback)
        except ValueError:
            pass

    def subscriber_count(self, event_type: EventType) -> int:
        """Number of handlers registered for an event type."""
        return len(self._handlers.get(event_type, []))

    def publish(self, event: Event) -> None:
        """Dispatch an event to every registered handler."""
        handlers = list(self._handlers.get(event.type, []))
        logger.debug(f"Publishing {event.type.value} to {len(handlers)} handler(s)")

        for callback in handlers:
            try:
                callback(event)
            except Exception:
                logger.exception(f"Error in handler for {event.type.value}")

    def emit(self, event_type: EventType, source: str = "dashstore", **metadata: Any) -> Event:
        """Build and publish an event in one call."""
        event = Event(type=event_type, source=source, metadata=metadata)
        self.publish(event)
        return event
