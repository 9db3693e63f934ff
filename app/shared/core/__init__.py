"""
Core utilities package for Crumb Coach.
Provides the exception hierarchy and the UI event bus.
"""

from .exceptions import (
    BakeNotFoundError,
    CapabilityUnavailableError,
    CrumbCoachException,
    EngineNotReadyError,
    NotFoundError,
    StorageError,
    ValidationError,
)

from .event_bus import (
    ALL_EVENTS,
    EventBus,
    EventHandler,
    UIEvent,
)

__all__ = [
    # Exceptions
    "BakeNotFoundError",
    "CapabilityUnavailableError",
    "CrumbCoachException",
    "EngineNotReadyError",
    "NotFoundError",
    "StorageError",
    "ValidationError",

    # Event bus
    "ALL_EVENTS",
    "EventBus",
    "EventHandler",
    "UIEvent",
]
