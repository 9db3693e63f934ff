# 📄 File: app/modules/bake_timeline/engine/dispatcher.py
# 🧭 Purpose (Layman Explanation):
# Decides how a bake reminder reaches the baker: a phone notification, or a banner inside
# the app when the phone is in quiet hours or notifications don't work, with the right
# sound and vibration for how important the reminder is.
# 🧪 Purpose (Technical Summary):
# Maps fire events to a priority-based delivery profile, selects the system channel or
# the in-app banner fallback (DND aware, no retries) and always emits alarm_fired.
# 🔗 Dependencies:
# engine.capabilities, engine.dnd_monitor, shared.core.event_bus, domain models
# 🔄 Connected Modules / Calls From:
# engine.scheduler (timer fires), engine.reconciliation (missed dispatch),
# engine.timezone_monitor (timezone warning)

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.shared.core.event_bus import EventBus

from ..domain.models.notification import FireEvent, FireKind, Priority
from . import ui_events
from .capabilities import AudioAlert, NotificationChannel

logger = logging.getLogger(__name__)

NOTIFICATION_ICON = "/favicon.ico"

DELIVERY_SYSTEM = "system"
DELIVERY_BANNER = "banner"

_TITLES: Dict[FireKind, str] = {
    FireKind.HEADS_UP: "⏰ Step Starting Soon",
    FireKind.START: "🍞 Baking Step Ready!",
    FireKind.END: "✅ Step Complete",
    FireKind.MISSED: "⚠️ Step Not Started",
    FireKind.BEDTIME: "🌙 Bedtime Check",
    FireKind.WAKEUP: "☀️ Good Morning!",
    FireKind.ADAPTIVE_START: "🍞 Baking Step Ready!",
    FireKind.ADAPTIVE_CHECK: "👀 Readiness Check",
    FireKind.TIMEZONE_CHANGE: "🌍 Timezone Changed",
}


@dataclass(frozen=True)
class DeliveryProfile:
    require_interaction: bool
    vibration_pattern: List[int] = field(default_factory=list)
    play_sound: bool = True


HIGH_PRIORITY_PROFILE = DeliveryProfile(
    require_interaction=True,
    vibration_pattern=[200, 100, 200, 100, 200],
    play_sound=True,
)


def notification_body(event: FireEvent) -> str:
    """Human readable body for a fire event."""
    name = event.step_name
    if event.kind == FireKind.HEADS_UP:
        body = f"Get ready: {name} starts soon"
    elif event.kind == FireKind.START:
        body = f"Time for: {name}"
    elif event.kind == FireKind.END:
        body = f"{name} is done"
    elif event.kind == FireKind.MISSED:
        body = f"{name} is still waiting for you"
    elif event.kind == FireKind.BEDTIME:
        body = f"Prepare {name} for the overnight rest"
    elif event.kind == FireKind.WAKEUP:
        body = f"Time to continue: {name}"
    elif event.kind == FireKind.ADAPTIVE_START:
        body = f"Start {name} and watch the dough"
    elif event.kind == FireKind.ADAPTIVE_CHECK:
        body = f"Check #{event.check_count}: is {name} ready?"
    else:
        body = event.message or name

    if event.is_missed_variant:
        body = f"{body} (missed — {event.late_minutes} minutes late)"
    return body


class NotificationDispatcher:
    """
    Delivers fire events.

    Delivery never raises to the caller. Channel failures fall back to the
    in-app banner and are not retried.
    """

    def __init__(
        self,
        event_bus: EventBus,
        dnd_monitor=None,
        channel: Optional[NotificationChannel] = None,
        audio: Optional[AudioAlert] = None,
        notify_low_priority_sound: bool = False,
    ):
        self.event_bus = event_bus
        self.dnd_monitor = dnd_monitor
        self.channel = channel
        self.audio = audio
        self.low_priority_profile = DeliveryProfile(
            require_interaction=False,
            vibration_pattern=[100],
            play_sound=notify_low_priority_sound,
        )

    def profile_for(self, priority: Priority) -> DeliveryProfile:
        if priority == Priority.HIGH:
            return HIGH_PRIORITY_PROFILE
        return self.low_priority_profile

    @property
    def dnd_active(self) -> bool:
        return bool(self.dnd_monitor and self.dnd_monitor.is_active)

    def dispatch(self, event: FireEvent) -> str:
        """
        Deliver one fire event.

        Returns:
            str: ``"system"`` when the channel presented it, ``"banner"`` otherwise
        """
        profile = self.profile_for(event.priority)
        title = _TITLES[event.kind]
        body = notification_body(event)
        payload = event.to_payload()

        if self.dnd_active:
            logger.info(f"DND active, delivering {event.kind.value} for step {event.step_id} in-app")
            delivery = DELIVERY_BANNER
        elif self._present(title, body, profile, event, payload):
            delivery = DELIVERY_SYSTEM
        else:
            delivery = DELIVERY_BANNER

        if delivery == DELIVERY_BANNER:
            self.event_bus.emit(ui_events.IN_APP_BANNER, {"title": title, "body": body, **payload})

        if profile.play_sound:
            self._play(profile)

        self.event_bus.emit(ui_events.ALARM_FIRED, {**payload, "delivery": delivery})
        logger.info(
            f"Dispatched {event.kind.value} ({event.priority.value}) for step "
            f"{event.step_id} via {delivery}"
        )
        return delivery

    def _present(
        self,
        title: str,
        body: str,
        profile: DeliveryProfile,
        event: FireEvent,
        payload: Dict[str, Any],
    ) -> bool:
        if self.channel is None:
            logger.debug("No notification channel, using in-app banner")
            return False

        try:
            if not self.channel.permission_granted():
                logger.debug("Notification permission not granted, using in-app banner")
                return False

            options = {
                "tag": f"bake-{event.bake_id}",
                "icon": NOTIFICATION_ICON,
                "requireInteraction": profile.require_interaction,
                "vibrate": profile.vibration_pattern,
                "silent": not profile.play_sound,
                "data": payload,
            }
            delivered = self.channel.present(title, body, options)
        except Exception as e:
            logger.warning(f"Notification channel failed for step {event.step_id}: {e}")
            return False

        if not delivered:
            logger.warning(f"Notification channel rejected {event.kind.value} for step {event.step_id}")
        return bool(delivered)

    def _play(self, profile: DeliveryProfile):
        if self.audio is None:
            return
        try:
            self.audio.play(profile.vibration_pattern)
        except Exception as e:
            logger.warning(f"Audio alert failed: {e}")
