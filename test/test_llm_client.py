import json
from datetime import date

import pytest

from llm.llm_client import (
    DEFAULT_MODEL,
    PLAN_FALLBACK_INSIGHT,
    LLMClient,
    sort_for_planning,
)
from zenith_tasks.models import PRIORITIES, Task


def test_enhance_task(fake_provider_factory):
    provider = fake_provider_factory(json.dumps({
        "enhancedTitle": "Send the March invoice",
        "description": "Prepare and send",
        "subtasks": ["Export hours", "Email invoice"],
        "priority": "high",
        "estimatedTime": "20 minutes",
        "category": "finance",
        "tags": ["billing"],
    }))
    client = LLMClient(provider=provider)
    out = client.enhance_task("send invoice")
    assert out.enhanced_title == "Send the March invoice"
    assert out.original_task == "send invoice"
    assert out.subtasks == ["Export hours", "Email invoice"]
    assert out.priority == "high"
    assert provider.calls[0]["temperature"] == 0.4
    assert provider.calls[0]["model"] == DEFAULT_MODEL


@pytest.mark.parametrize("text", ["", "x", "Buy milk", "Mama morgen um 14 Uhr anrufen", "{" * 20])
@pytest.mark.parametrize("reply", [RuntimeError("provider down"), "not json", '{"priority": "ASAP"}'])
def test_enhancement_always_has_subtasks_and_known_priority(fake_provider_factory, text, reply):
    client = LLMClient(provider=fake_provider_factory(reply))
    out = client.enhance_task(text)
    assert len(out.subtasks) >= 1
    assert out.priority in PRIORITIES


def test_enhancement_fallback_shape(fake_provider_factory):
    client = LLMClient(provider=fake_provider_factory(RuntimeError("boom")))
    out = client.enhance_task("Call mom")
    assert out.enhanced_title == "Call mom"
    assert out.description == "Task: Call mom"
    assert out.subtasks == ["Call mom"]
    assert out.estimated_time == "30 minutes"
    assert out.category == "general"


def test_enhancement_is_cached_per_text_and_model(fake_provider_factory):
    provider = fake_provider_factory('{"enhancedTitle": "Cached", "subtasks": ["a"]}')
    client = LLMClient(provider=provider)
    first = client.enhance_task("same input")
    first.subtasks.append("mutated by caller")
    second = client.enhance_task("same input")
    assert len(provider.calls) == 1
    assert second.subtasks == ["a"]

    client.enhance_task("same input", model="other/model")
    assert len(provider.calls) == 2

    client.clear_cache()
    client.enhance_task("same input")
    assert len(provider.calls) == 3


def test_fallback_is_not_cached(fake_provider_factory):
    provider = fake_provider_factory("garbage")
    client = LLMClient(provider=provider)
    client.enhance_task("x")
    client.enhance_task("x")
    assert len(provider.calls) == 2


def test_usage_counts_only_successes(fake_provider_factory):
    good = LLMClient(provider=fake_provider_factory('{"title": "Call mom", "dueTime": "14:00"}'))
    good.parse_natural_language("Call mom at 2pm")
    good.parse_natural_language("Call dad at 3pm")
    assert good.get_model_usage_stats() == {DEFAULT_MODEL: 2}

    bad = LLMClient(provider=fake_provider_factory("nope"))
    bad.parse_natural_language("Call mom")
    assert bad.get_model_usage_stats() == {}


def test_parse_natural_language_injects_dates(fake_provider_factory):
    provider = fake_provider_factory('{"title": "Call mom", "dueDate": "2026-03-02", "dueTime": "14:00"}')
    client = LLMClient(provider=provider)
    out = client.parse_natural_language("Call mom tomorrow at 2pm", today=date(2026, 3, 1))
    assert out.due_date == "2026-03-02"
    assert out.due_time == "14:00"
    assert "Today is 2026-03-01" in provider.calls[0]["system"]
    assert "2026-03-02" in provider.calls[0]["system"]


def test_parse_natural_language_fallback(fake_provider_factory):
    client = LLMClient(provider=fake_provider_factory(""))
    out = client.parse_natural_language("Water plants")
    assert out.title == "Water plants"
    assert out.priority == "medium"
    assert out.due_date is None


def test_generate_daily_plan(fake_provider_factory):
    provider = fake_provider_factory(json.dumps({
        "timeBlocks": [
            {"id": "b1", "startTime": "09:00", "endTime": "10:30", "task": "Write report", "priority": "high"},
        ],
        "insights": ["Deep work first"],
        "recommendations": ["Take breaks"],
        "totalFocusTime": "1.5 hours",
        "productivityScore": 140,
    }))
    client = LLMClient(provider=provider)
    plan = client.generate_daily_plan([Task(title="Write report", priority="high")])
    assert [b.task for b in plan.time_blocks] == ["Write report"]
    assert plan.productivity_score == 100
    assert provider.calls[0]["temperature"] == 0.2


def test_daily_plan_only_sends_pending_tasks(fake_provider_factory):
    provider = fake_provider_factory('{"timeBlocks": []}')
    client = LLMClient(provider=provider)
    plan = client.generate_daily_plan([
        Task(title="Done already", completed=True),
        Task(title="Still open"),
    ])
    assert "Still open" in provider.calls[0]["user"]
    assert "Done already" not in provider.calls[0]["user"]
    assert plan.insights


def test_sort_for_planning_orders_by_priority_and_due():
    today = date(2026, 3, 1)
    tasks = [
        Task(title="low", priority="low"),
        Task(title="high", priority="high"),
        Task(title="medium due", priority="medium", due_date="2026-03-01"),
        Task(title="urgent", priority="urgent"),
    ]
    ordered = [t.title for t in sort_for_planning(tasks, today=today)]
    assert ordered[0] == "urgent"
    assert ordered[-1] == "low"
    assert ordered.index("high") < ordered.index("low")
    assert ordered.index("medium due") < ordered.index("low")


def test_provide_coaching_caps_at_three(fake_provider_factory):
    many = [{"type": "productivity", "title": f"Insight {i}", "description": "d"} for i in range(7)]
    client = LLMClient(provider=fake_provider_factory(json.dumps(many)))
    insights = client.provide_coaching({"totalTasks": 7})
    assert len(insights) == 3
    assert [i.title for i in insights] == ["Insight 0", "Insight 1", "Insight 2"]


def test_provide_coaching_drops_invalid_entries(fake_provider_factory):
    reply = json.dumps([{"description": "no title"}, "junk", {"type": "odd", "title": "Kept"}])
    client = LLMClient(provider=fake_provider_factory(reply))
    insights = client.provide_coaching({})
    assert [i.title for i in insights] == ["Kept"]
    assert insights[0].type == "suggestion"


@pytest.mark.parametrize("reply", ["[]", "nothing useful", RuntimeError("down"), '{"title": "object not array"}'])
def test_provide_coaching_fallback(fake_provider_factory, reply):
    client = LLMClient(provider=fake_provider_factory(reply))
    insights = client.provide_coaching({})
    assert len(insights) == 1
    assert insights[0].title == "Keep Going!"


def test_plan_fallback_constant_is_exposed():
    assert PLAN_FALLBACK_INSIGHT == "Unable to generate plan - please try again"
