"""Build an iCalendar event and a Google Calendar link for one task."""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote

from zenith_tasks.models import CalendarEventRequest, CalendarEventResponse

DEFAULT_DURATION_MINUTES = 90
DEFAULT_START_TIME = "09:00"
DEFAULT_DESCRIPTION = "AI-generated task"
GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"

_FLOAT_RE = re.compile(r"(\d+\.?\d*)")
_INT_RE = re.compile(r"(\d+)")


def parse_duration_minutes(estimated: Optional[str]) -> float:
    """'2 hours' -> 120, '45 minutes' -> 45, anything else -> 90."""
    if not estimated:
        return DEFAULT_DURATION_MINUTES
    if "hour" in estimated:
        m = _FLOAT_RE.search(estimated)
        return float(m.group(1) if m else "1.5") * 60
    if "minute" in estimated:
        m = _INT_RE.search(estimated)
        return int(m.group(1)) if m else DEFAULT_DURATION_MINUTES
    return DEFAULT_DURATION_MINUTES


def format_stamp(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%SZ")


def event_window(due_date: str, due_time: Optional[str], estimated: Optional[str]):
    """Start and end of the event. Times are taken as UTC."""
    time_part = due_time or DEFAULT_START_TIME
    if len(time_part) == 5:
        time_part += ":00"
    start = datetime.fromisoformat(f"{due_date}T{time_part}")
    end = start + timedelta(minutes=parse_duration_minutes(estimated))
    return start, end


def build_ical(request: CalendarEventRequest, start: datetime, end: datetime) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//AI Task Manager//EN",
        "BEGIN:VEVENT",
        f"UID:task-{request.task_id}@aitaskmanager.com",
        f"DTSTART:{format_stamp(start)}",
        f"DTEND:{format_stamp(end)}",
        f"SUMMARY:{request.title}",
        f"DESCRIPTION:{request.description or DEFAULT_DESCRIPTION}",
        "STATUS:CONFIRMED",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines)


def google_calendar_url(title: str, description: Optional[str], start: datetime, end: datetime) -> str:
    return (
        f"{GOOGLE_CALENDAR_URL}?action=TEMPLATE"
        f"&text={quote(title, safe='')}"
        f"&dates={format_stamp(start)}/{format_stamp(end)}"
        f"&details={quote(description or DEFAULT_DESCRIPTION, safe='')}"
        "&location=&trp=false"
    )


def build_event(request: CalendarEventRequest) -> CalendarEventResponse:
    start, end = event_window(request.due_date, request.due_time, request.estimated_time)
    return CalendarEventResponse(
        ical_content=build_ical(request, start, end),
        google_calendar_url=google_calendar_url(request.title, request.description, start, end),
    )
