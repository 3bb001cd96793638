import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_services
from api.state import Services
from integration.calendar_sync import CalendarSyncError
from integration.webhook import notify_webhook
from storage.task_store import TaskNotFoundError
from zenith_tasks.models import CamelModel

router = APIRouter(prefix="/integrations")
logger = logging.getLogger(__name__)


class CalendarSyncIn(CamelModel):
    include_completed: bool = False


class WebhookIn(CamelModel):
    url: str = ""
    task_id: Optional[str] = None


def _test_task() -> dict:
    return {
        "id": "test-task",
        "title": "Test Task from AI Zenith",
        "description": "This is a test task to verify your Zapier integration",
        "priority": "medium",
        "category": "test",
        "completed": False,
        "createdAt": datetime.now().isoformat(),
    }


@router.post("/calendar/sync")
async def sync_calendar(payload: CalendarSyncIn, services: Services = Depends(get_services)) -> dict:
    summary = await services.calendar.sync_all(services.store.tasks, include_completed=payload.include_completed)
    return summary.model_dump()


@router.post("/calendar/{task_id}")
async def sync_one(task_id: str, services: Services = Depends(get_services)) -> dict:
    try:
        task = services.store.get_task(task_id)
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    try:
        url = await services.calendar.sync_task(task)
    except CalendarSyncError as e:
        services.notifications.error("Calendar Sync Failed", str(e))
        raise HTTPException(status_code=502, detail=str(e))
    return {"googleCalendarUrl": url}


@router.post("/webhook")
async def trigger_webhook(payload: WebhookIn, services: Services = Depends(get_services)) -> dict:
    if not payload.url:
        services.notifications.error("Configuration Required", "Please enter your Zapier webhook URL first")
        raise HTTPException(status_code=422, detail="webhook URL is required")

    if payload.task_id:
        try:
            task = services.store.get_task(payload.task_id).model_dump(by_alias=True)
        except TaskNotFoundError:
            raise HTTPException(status_code=404, detail=f"Task {payload.task_id} not found")
    else:
        task = _test_task()

    dispatch = await notify_webhook(
        payload.url,
        task,
        timeout=services.settings.http_timeout_s,
        transport=services.transport,
    )
    if dispatch.sent:
        services.notifications.notify("Zapier Triggered", "Task data sent to your Zapier webhook.")
    else:
        services.notifications.error(
            "Integration Error", "Failed to trigger Zapier webhook. Please check your URL."
        )
    return dispatch.model_dump()
