"""
Platform capabilities consumed by the notification engine.

Every ambient platform service the engine touches (time, timers, durable
storage, system notifications, audio, timezone resolution) is an interface
supplied at construction. Production adapters live in
``bake_timeline.infrastructure``; tests use virtual doubles.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

StandaloneSignal = Callable[[], bool]
TimerCallback = Callable[[], None]


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant as a timezone-aware UTC datetime."""


class TimerPrimitive(ABC):
    @abstractmethod
    def schedule(self, delay_ms: int, callback: TimerCallback) -> Any:
        """Run ``callback`` once after ``delay_ms`` and return a cancel handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending callback. Cancelling twice is a no-op."""


class DurableStore(ABC):
    """String key-value storage that survives a restart."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass


class NotificationChannel(ABC):
    """System-level alert surface."""

    @abstractmethod
    def present(self, title: str, body: str, options: Dict[str, Any]) -> bool:
        """Present an alert. Returns False when delivery failed."""

    @abstractmethod
    def permission_granted(self) -> bool:
        pass


class AudioAlert(ABC):
    @abstractmethod
    def play(self, vibration_pattern: List[int]) -> None:
        """Play the alert tone (and vibrate where supported)."""


class TimezoneResolver(ABC):
    @abstractmethod
    def current_zone(self) -> str:
        """Resolved IANA zone id, e.g. ``Europe/Berlin``."""
