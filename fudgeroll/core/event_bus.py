"""
Event bus for Fudge Roll.

Finished rolls are published as events; whatever renders chat messages
subscribes to them. The bus keeps no history.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    """Generate an id like 'evt_a1b2c3d4e5f6'."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Event:
    """
    An immutable notification that something happened.

    Attributes:
        event_id: Unique identifier
        timestamp: When this event occurred (UTC)
        event_type: Type of event (e.g. 'roll.completed')
        data: Event-specific payload
        actor_id: Who/what caused this event
    """
    event_id: str
    timestamp: datetime
    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    actor_id: Optional[str] = None

    @staticmethod
    def create(event_type: str, data: Dict[str, Any],
               actor_id: Optional[str] = None) -> 'Event':
        return Event(
            event_id=generate_id('evt'),
            timestamp=datetime.now(timezone.utc),
            event_type=event_type,
            data=data,
            actor_id=actor_id
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'event_id': self.event_id,
            'timestamp': self.timestamp.isoformat(),
            'event_type': self.event_type,
            'actor_id': self.actor_id,
            'data': self.data
        }


class EventBus:
    """
    Publish/subscribe hub keyed by event type.

    Attributes:
        listeners: Dict mapping event types to lists of callback functions
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable[[Event], None]]] = {}

    def subscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        """
        Subscribe to events of a specific type.

        Subscribing the same callback twice is a no-op.

        Examples:
            >>> def on_roll(event: Event):
            ...     print(event.data['flavor'], event.data['total'])
            >>>
            >>> bus.subscribe('roll.completed', on_roll)
        """
        callbacks = self.listeners.setdefault(event_type, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        if callback in self.listeners.get(event_type, []):
            self.listeners[event_type].remove(callback)

    def publish(self, event: Event) -> None:
        """
        Deliver an event to every listener for its type.

        A failing listener is logged and does not stop delivery to the rest.
        """
        for callback in list(self.listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Error in listener for '{event.event_type}' ({event.event_id})")

    def clear_listeners(self, event_type: Optional[str] = None) -> None:
        """Clear listeners for one event type, or all of them."""
        if event_type:
            self.listeners.pop(event_type, None)
        else:
            self.listeners = {}

    def get_listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type:
            return len(self.listeners.get(event_type, []))
        return sum(len(callbacks) for callbacks in self.listeners.values())
