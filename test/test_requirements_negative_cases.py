import pytest

from zenith_tasks.models import AIInsight, CalendarEventRequest, DailyPlan, SupportEmailRequest, Task


def test_task_empty_title():
    with pytest.raises(Exception):
        Task(title="")


def test_task_blank_title():
    with pytest.raises(Exception):
        Task(title="   ")


def test_insight_requires_title():
    with pytest.raises(Exception):
        AIInsight(description="no title")


def test_calendar_request_requires_due_date():
    with pytest.raises(Exception):
        CalendarEventRequest.model_validate({"taskId": "1", "title": "x"})


def test_support_email_requires_message():
    with pytest.raises(Exception):
        SupportEmailRequest(name="Ana", email="ana@example.com", subject="Help", message="")


def test_plan_score_never_leaves_range():
    assert DailyPlan(productivity_score=1000).productivity_score == 100
    assert DailyPlan.model_validate({"productivityScore": "n/a"}).productivity_score == 0
