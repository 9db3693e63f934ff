# 📄 File: app/modules/bake_timeline/presentation/api/v1/alarms.py
# 🧭 Purpose (Layman Explanation):
# Web endpoints the app uses to set, cancel and list the alarms for each baking step,
# and to say "I'm back in the app" so timezone changes get noticed.
# 🧪 Purpose (Technical Summary):
# Thin FastAPI surface over the BakeNotificationEngine held on app.state: schedule (debounced),
# clear, acknowledge, status listing, foreground signal and recent UI events.
# 🔗 Dependencies:
# FastAPI, presentation.dependencies (get_engine), alarm schemas, engine
# 🔄 Connected Modules / Calls From:
# app.api.v1.router (router inclusion), Crumb Coach client app

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.modules.bake_timeline.engine.engine import BakeNotificationEngine
from app.modules.bake_timeline.presentation.api.schemas.alarm_schemas import (
    AcknowledgeResponse,
    AlarmStatusResponse,
    ScheduleAlarmRequest,
    ScheduleAlarmResponse,
    ScheduledNotificationSchema,
    UIEventListResponse,
    UIEventSchema,
)
from app.modules.bake_timeline.presentation.dependencies import get_engine

logger = logging.getLogger(__name__)

alarms_router = APIRouter()


@alarms_router.post(
    "/bakes/{bake_id}/steps/{step_id}/alarms",
    response_model=ScheduleAlarmResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Schedule step alarms",
    description="Schedule the alarms for a bake step. Rapid repeats for the same step collapse into the last one.",
)
async def schedule_step_alarms(
    bake_id: str,
    step_id: str,
    request: ScheduleAlarmRequest,
    engine: BakeNotificationEngine = Depends(get_engine),
) -> ScheduleAlarmResponse:
    accepted = engine.schedule_step_alarms(
        step_id=step_id,
        step_name=request.step_name,
        start_time=request.start_time,
        duration_minutes=request.duration_minutes,
        bake_id=bake_id,
        options=request.to_options(),
    )
    return ScheduleAlarmResponse(
        bake_id=bake_id,
        step_id=step_id,
        accepted=accepted,
        debounce_ms=engine.config.debounce_ms,
    )


@alarms_router.delete(
    "/bakes/{bake_id}/steps/{step_id}/alarms",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear step alarms",
)
async def clear_step_alarms(
    bake_id: str,
    step_id: str,
    engine: BakeNotificationEngine = Depends(get_engine),
) -> Response:
    engine.clear_alarm(step_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@alarms_router.post(
    "/bakes/{bake_id}/steps/{step_id}/alarms/acknowledge",
    response_model=AcknowledgeResponse,
    summary="Acknowledge a started step",
    description="Cancel the missed-step reminder once the baker has started the step",
)
async def acknowledge_step(
    bake_id: str,
    step_id: str,
    engine: BakeNotificationEngine = Depends(get_engine),
) -> AcknowledgeResponse:
    return AcknowledgeResponse(step_id=step_id, acknowledged=engine.acknowledge_step(step_id))


@alarms_router.get(
    "/alarms",
    response_model=AlarmStatusResponse,
    summary="List scheduled alarms",
)
async def list_alarms(engine: BakeNotificationEngine = Depends(get_engine)) -> AlarmStatusResponse:
    return AlarmStatusResponse(
        scheduled_steps=engine.get_scheduled_alarms(),
        active_notifications=[
            ScheduledNotificationSchema.from_domain(r) for r in engine.get_active_records()
        ],
        dnd_active=engine.dnd_monitor.is_active,
        dnd_reason=engine.dnd_monitor.reason,
        timezone=engine.timezone_monitor.last_zone,
    )


@alarms_router.post(
    "/alarms/foreground",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Report app foregrounding",
    description="Trigger a debounced timezone check and a do-not-disturb refresh",
)
async def report_foreground(engine: BakeNotificationEngine = Depends(get_engine)) -> dict:
    engine.on_foreground()
    return {"status": "checking"}


@alarms_router.get(
    "/alarms/events",
    response_model=UIEventListResponse,
    summary="Recent engine events",
)
async def recent_events(
    event_type: Optional[str] = Query(None, alias="eventType"),
    engine: BakeNotificationEngine = Depends(get_engine),
) -> UIEventListResponse:
    return UIEventListResponse(
        events=[
            UIEventSchema(
                event_id=e.event_id,
                event_type=e.event_type,
                payload=e.payload,
                timestamp=e.timestamp,
            )
            for e in engine.event_bus.recent_events(event_type)
        ]
    )
