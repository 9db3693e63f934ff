"""
UI event types raised by the notification engine.

Payload keys are camelCase because the events are forwarded verbatim to
the client application.
"""

ALARM_FIRED = "alarm_fired"
IN_APP_BANNER = "in_app_banner"
RECONCILIATION_SUMMARY = "reconciliation_summary"
DND_STATUS_CHANGED = "dnd_status_changed"
TIMEZONE_CHANGE_DETECTED = "timezone_change_detected"

ENGINE_EVENT_TYPES = (
    ALARM_FIRED,
    IN_APP_BANNER,
    RECONCILIATION_SUMMARY,
    DND_STATUS_CHANGED,
    TIMEZONE_CHANGE_DETECTED,
)
