"""
UI event bus for Crumb Coach.
Lets the notification engine tell observers (UI bridge, analytics, tests)
what happened without knowing who is listening.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

# Subscribing to this type receives every event.
ALL_EVENTS = "*"


@dataclass
class UIEvent:
    """
    Something the UI may want to react to.
    Events are fire-and-forget; no response is expected from listeners.
    """
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[UIEvent], None]


@dataclass
class EventSubscription:
    """Event subscription configuration."""
    handler: EventHandler
    event_type: str
    priority: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert subscription to dictionary."""
        return {
            "handler_name": getattr(self.handler, "__name__", type(self.handler).__name__),
            "event_type": self.event_type,
            "priority": self.priority,
        }


class EventBus:
    """
    Synchronous publish/subscribe bus.

    Handlers run in the publisher's context, highest priority first.
    A failing handler is logged and skipped; it never affects the
    publisher or the other handlers.
    """

    def __init__(self, history_size: int = 200):
        self.subscriptions: Dict[str, List[EventSubscription]] = {}
        self._history: Deque[UIEvent] = deque(maxlen=history_size)
        self._lock = threading.RLock()
        self._stats = {
            "published": 0,
            "delivered": 0,
            "failed": 0,
        }

    def subscribe(
        self,
        handler: EventHandler,
        event_type: str = ALL_EVENTS,
        priority: int = 1
    ) -> EventSubscription:
        """
        Subscribe handler to event type.

        Args:
            handler: Callable receiving the event
            event_type: Event type to subscribe to (ALL_EVENTS for every event)
            priority: Handler priority (higher = executed first)
        """
        subscription = EventSubscription(handler=handler, event_type=event_type, priority=priority)

        with self._lock:
            self.subscriptions.setdefault(event_type, []).append(subscription)
            self.subscriptions[event_type].sort(key=lambda s: s.priority, reverse=True)

        logger.debug(f"Handler {subscription.to_dict()['handler_name']} subscribed to {event_type}")
        return subscription

    def unsubscribe(self, handler: EventHandler, event_type: str = ALL_EVENTS):
        """Unsubscribe handler from event type."""
        with self._lock:
            if event_type in self.subscriptions:
                self.subscriptions[event_type] = [
                    s for s in self.subscriptions[event_type]
                    if s.handler != handler
                ]

                if not self.subscriptions[event_type]:
                    del self.subscriptions[event_type]

    def publish(self, event: UIEvent) -> UIEvent:
        """
        Publish event to every matching subscriber.

        Args:
            event: Event to publish

        Returns:
            The published event
        """
        with self._lock:
            self._history.append(event)
            self._stats["published"] += 1
            handlers = list(self.subscriptions.get(event.event_type, []))
            handlers += self.subscriptions.get(ALL_EVENTS, [])

        for subscription in handlers:
            try:
                subscription.handler(event)
                self._stats["delivered"] += 1
            except Exception as e:
                self._stats["failed"] += 1
                logger.error(
                    f"UI event handler failed for {event.event_type} ({event.event_id}): {e}",
                    exc_info=True
                )

        logger.debug(f"Event published: {event.event_type} - {event.event_id}")
        return event

    def emit(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> UIEvent:
        """Build and publish an event in one call."""
        return self.publish(UIEvent(event_type=event_type, payload=payload or {}))

    def recent_events(self, event_type: Optional[str] = None) -> List[UIEvent]:
        """Events still held in the bounded history, oldest first."""
        with self._lock:
            events = list(self._history)
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_subscriptions(self) -> Dict[str, List[Dict[str, Any]]]:
        """Get all current subscriptions."""
        with self._lock:
            return {
                event_type: [sub.to_dict() for sub in subscriptions]
                for event_type, subscriptions in self.subscriptions.items()
            }

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics."""
        return {
            **self._stats,
            "subscription_count": sum(len(s) for s in self.subscriptions.values()),
        }
