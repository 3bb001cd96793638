from datetime import datetime
from urllib.parse import parse_qs, urlparse

import pytest

from integration.calendar_event import build_event, event_window, format_stamp, parse_duration_minutes
from zenith_tasks.models import CalendarEventRequest


@pytest.mark.parametrize(
    "text,minutes",
    [
        ("2 hours", 120),
        ("1.5 hours", 90),
        ("45 minutes", 45),
        ("about an hour", 90),
        ("a few minutes", 90),
        ("half a day", 90),
        (None, 90),
        ("", 90),
    ],
)
def test_parse_duration_minutes(text, minutes):
    assert parse_duration_minutes(text) == minutes


def test_format_stamp_is_utc_basic_format():
    assert format_stamp(datetime(2026, 3, 1, 9, 5, 7)) == "20260301T090507Z"


def test_event_window_defaults_to_nine():
    start, end = event_window("2026-03-01", None, "30 minutes")
    assert start == datetime(2026, 3, 1, 9, 0)
    assert end == datetime(2026, 3, 1, 9, 30)


def test_build_event_ical_and_google_link():
    req = CalendarEventRequest.model_validate({
        "taskId": "abc",
        "title": "Write report & send",
        "description": "Quarterly numbers",
        "dueDate": "2026-03-01",
        "dueTime": "14:00",
        "estimatedTime": "2 hours",
    })
    event = build_event(req)

    lines = event.ical_content.split("\r\n")
    assert lines[0] == "BEGIN:VCALENDAR"
    assert "PRODID:-//AI Task Manager//EN" in lines
    assert "UID:task-abc@aitaskmanager.com" in lines
    assert "DTSTART:20260301T140000Z" in lines
    assert "DTEND:20260301T160000Z" in lines
    assert "SUMMARY:Write report & send" in lines
    assert "DESCRIPTION:Quarterly numbers" in lines
    assert "STATUS:CONFIRMED" in lines
    assert lines[-1] == "END:VCALENDAR"

    url = urlparse(event.google_calendar_url)
    assert url.netloc == "calendar.google.com"
    qs = parse_qs(url.query, keep_blank_values=True)
    assert qs["action"] == ["TEMPLATE"]
    assert qs["text"] == ["Write report & send"]
    assert qs["dates"] == ["20260301T140000Z/20260301T160000Z"]
    assert qs["details"] == ["Quarterly numbers"]
    assert qs["trp"] == ["false"]


def test_missing_description_uses_placeholder():
    req = CalendarEventRequest(task_id="1", title="X", due_date="2026-03-01")
    event = build_event(req)
    assert "DESCRIPTION:AI-generated task" in event.ical_content
    assert "details=AI-generated%20task" in event.google_calendar_url
    assert event.success is True
    assert event.model_dump(by_alias=True)["googleCalendarUrl"] == event.google_calendar_url


def test_bad_date_raises():
    with pytest.raises(ValueError):
        event_window("not-a-date", None, None)
