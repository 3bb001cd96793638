"""Calendar link adapter: asks the add-to-calendar function for a link and opens it.

The link is a pre-filled Google Calendar template. Nothing here writes to a
calendar directly; the user confirms the event in the browser tab.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
from pydantic import BaseModel, Field

from zenith_tasks.config import Settings, get_settings
from zenith_tasks.models import Task
from zenith_tasks.notifications import NotificationCenter

logger = logging.getLogger(__name__)


class CalendarSyncError(RuntimeError):
    pass


class CalendarSyncSummary(BaseModel):
    succeeded: int = 0
    failed: int = 0
    urls: List[str] = Field(default_factory=list)
    failures: List[Dict[str, str]] = Field(default_factory=list)


def build_description(task: Task) -> str:
    """Event body: description, numbered subtasks, tags and the task's metadata."""
    subtasks = ""
    if task.subtasks:
        numbered = "\n".join(f"{i}. {s}" for i, s in enumerate(task.subtasks, start=1))
        subtasks = f"\n\nSubtasks:\n{numbered}"
    tags = f"\n\nTags: {', '.join(task.tags)}" if task.tags else ""
    return (
        f"{task.description or ''}{subtasks}{tags}"
        f"\n\nPriority: {task.priority.upper()}"
        f"\nCategory: {task.category}"
        f"\nEstimated Time: {task.estimated_time}"
    )


class CalendarSyncAdapter:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        opener: Optional[Callable[[str], Any]] = None,
        notifications: Optional[NotificationCenter] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._open = opener or webbrowser.open_new_tab
        self.notifications = notifications or NotificationCenter()

    def build_payload(self, task: Task, is_update: bool = False) -> Dict[str, Any]:
        return {
            "taskId": task.id,
            "title": f"✅ {task.title}" if task.completed else task.title,
            "description": build_description(task),
            "dueDate": task.due_date,
            "dueTime": task.due_time or "09:00",
            "estimatedTime": task.estimated_time,
            "completed": task.completed,
            "priority": task.priority,
            "category": task.category,
            "isUpdate": is_update,
        }

    def open_link(self, url: str) -> None:
        logger.info(f"Opening calendar link {url[:80]}")
        self._open(url)

    async def request_link(self, payload: Dict[str, Any]) -> Optional[str]:
        """POST one event to the calendar function; returns its Google Calendar URL."""
        async with httpx.AsyncClient(
            timeout=self.settings.http_timeout_s, transport=self._transport
        ) as client:
            resp = await client.post(self.settings.calendar_function_url, json=payload)

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400 or data.get("error"):
            raise CalendarSyncError(data.get("error") or f"calendar function returned {resp.status_code}")
        return data.get("googleCalendarUrl")

    async def sync_task(self, task: Task, is_update: bool = False) -> Optional[str]:
        if not task.due_date:
            raise CalendarSyncError(f"task {task.id} has no due date")
        url = await self.request_link(self.build_payload(task, is_update=is_update))
        if url:
            self.open_link(url)
        return url

    @staticmethod
    def syncable(tasks: Iterable[Task], include_completed: bool = False) -> List[Task]:
        return [t for t in tasks if t.due_date and (include_completed or not t.completed)]

    async def sync_all(self, tasks: Iterable[Task], include_completed: bool = False) -> CalendarSyncSummary:
        to_sync = self.syncable(tasks, include_completed)
        summary = CalendarSyncSummary()
        if not to_sync:
            self.notifications.error("No Tasks to Sync", "No tasks found with specific dates to sync.")
            return summary

        results = await asyncio.gather(
            *(self.sync_task(t) for t in to_sync), return_exceptions=True
        )
        for task, result in zip(to_sync, results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to sync task {task.id} to calendar: {result}")
                summary.failed += 1
                summary.failures.append({"task_id": task.id, "error": str(result)})
                continue
            summary.succeeded += 1
            if result:
                summary.urls.append(result)

        if summary.succeeded:
            tail = f", {summary.failed} failed" if summary.failed else ""
            self.notifications.notify(
                "Calendar Sync Complete!",
                f"{summary.succeeded} tasks synced successfully{tail}.",
            )
        else:
            self.notifications.error(
                "Sync Failed",
                "All tasks failed to sync. Please check your internet connection and try again.",
            )
        return summary
