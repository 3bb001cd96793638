"""AI gateway: prompts a hosted model and turns its replies into domain objects.

Model output is treated as an unreliable oracle. None of the public methods
raise; each one has a deterministic fallback value that keeps the task
workflow going when the provider is down or answers with garbage.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from llm import prompts
from llm.providers.base import LLMProvider
from llm.sanitizer import ResponseParseError, extract_json
from zenith_tasks.config import Settings, get_settings
from zenith_tasks.models import (
    PRIORITY_RANK,
    AIInsight,
    DailyPlan,
    NaturalLanguageIntent,
    PlanPreferences,
    Task,
    TaskEnhancement,
)

logger = logging.getLogger(__name__)


MODELS = {
    "DEEPSEEK_CHAT_V3": "deepseek/deepseek-chat-v3-0324:free",
    "QWEN3_235B": "qwen/qwen3-235b-a22b-2507:free",
    "KIMI_K2": "moonshotai/kimi-k2:free",
    "DEEPSEEK_R1T2_CHIMERA": "tngtech/deepseek-r1t2-chimera:free",
    "DEEPSEEK_R1_0528": "deepseek/deepseek-r1-0528:free",
    "DEEPSEEK_R1": "deepseek/deepseek-r1:free",
    "GEMINI_25_PRO": "google/gemini-2.5-pro-exp-03-25",
}

# Fastest first, most capable last.
MODEL_PRIORITY = [
    MODELS["DEEPSEEK_CHAT_V3"],
    MODELS["QWEN3_235B"],
    MODELS["KIMI_K2"],
    MODELS["DEEPSEEK_R1T2_CHIMERA"],
    MODELS["DEEPSEEK_R1_0528"],
    MODELS["DEEPSEEK_R1"],
    MODELS["GEMINI_25_PRO"],
]

DEFAULT_MODEL = MODELS["DEEPSEEK_R1T2_CHIMERA"]

PLAN_FALLBACK_INSIGHT = "Unable to generate plan - please try again"


def get_provider(settings: Optional[Settings] = None) -> LLMProvider:
    settings = settings or get_settings()
    if settings.llm_provider == "openrouter":
        from llm.providers.openrouter_provider import OpenRouterProvider

        return OpenRouterProvider(settings)
    from llm.providers.mock_provider import MockProvider

    return MockProvider()


def fallback_enhancement(text: str) -> TaskEnhancement:
    return TaskEnhancement(
        original_task=text,
        enhanced_title=text,
        description=f"Task: {text}",
        subtasks=[text],
        priority="medium",
        estimated_time="30 minutes",
        category="general",
    )


def fallback_intent(text: str) -> NaturalLanguageIntent:
    return NaturalLanguageIntent(title=text, priority="medium", due_date=None)


def fallback_plan() -> DailyPlan:
    return DailyPlan(
        time_blocks=[],
        insights=[PLAN_FALLBACK_INSIGHT],
        recommendations=["Add more specific time estimates to your tasks"],
        total_focus_time="0 hours",
        productivity_score=0,
    )


def fallback_insights() -> List[AIInsight]:
    return [
        AIInsight(
            type="suggestion",
            title="Keep Going!",
            description="You're making great progress on your tasks today.",
            actionable=False,
            priority=3,
        )
    ]


def sort_for_planning(tasks: Iterable[Task], today: Optional[date] = None) -> List[Task]:
    """Incomplete tasks ordered by priority, with a bump for anything due today or earlier."""
    today_str = (today or date.today()).isoformat()

    def weight(task: Task) -> int:
        urgent = 1 if task.due_date and task.due_date <= today_str else 0
        return PRIORITY_RANK.get(task.priority, 2) + urgent

    pending = [t for t in tasks if not t.completed]
    return sorted(pending, key=weight, reverse=True)


class LLMClient:
    def __init__(self, provider: Optional[LLMProvider] = None):
        self.provider = provider if provider is not None else get_provider()
        self._cache: Dict[Tuple[str, str], TaskEnhancement] = {}
        self._model_usage: Dict[str, int] = {}

    # -- bookkeeping ---------------------------------------------------------

    def _track_model_usage(self, model: str) -> None:
        self._model_usage[model] = self._model_usage.get(model, 0) + 1

    def get_model_usage_stats(self) -> Dict[str, int]:
        return dict(self._model_usage)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _complete(self, *, system: str, user: str, model: str, temperature: float, max_tokens: int) -> str:
        return self.provider.generate(
            system=system,
            user=user,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    # -- operations ----------------------------------------------------------

    def enhance_task(self, text: str, model: str = DEFAULT_MODEL) -> TaskEnhancement:
        key = (text, model)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Enhancement cache hit for model={model}")
            return cached.model_copy(deep=True)

        try:
            raw = self._complete(
                system=prompts.ENHANCE_TASK_PROMPT,
                user=text,
                model=model,
                temperature=0.4,
                max_tokens=1000,
            )
            data = extract_json(raw, kind="object")
            if not isinstance(data, dict):
                raise ResponseParseError("enhancement is not an object")
            data.setdefault("originalTask", text)
            result = TaskEnhancement.model_validate(data)
        except (ResponseParseError, ValidationError) as e:
            logger.warning(f"Unusable enhancement response from {model}: {e}")
            return fallback_enhancement(text)
        except Exception as e:
            logger.warning(f"Task enhancement failed on {model}: {e}")
            return fallback_enhancement(text)

        self._cache[key] = result
        self._track_model_usage(model)
        return result.model_copy(deep=True)

    def parse_natural_language(
        self,
        text: str,
        model: str = DEFAULT_MODEL,
        today: Optional[date] = None,
    ) -> NaturalLanguageIntent:
        today = today or date.today()
        system = prompts.NATURAL_LANGUAGE_PROMPT.format(
            today=today.isoformat(),
            tomorrow=(today + timedelta(days=1)).isoformat(),
        )
        try:
            raw = self._complete(system=system, user=text, model=model, temperature=0.3, max_tokens=400)
            data = extract_json(raw, kind="object")
            if not isinstance(data, dict):
                raise ResponseParseError("intent is not an object")
            if not data.get("title"):
                data["title"] = text
            result = NaturalLanguageIntent.model_validate(data)
        except Exception as e:
            logger.warning(f"Natural language parsing failed, using fallback: {e}")
            return fallback_intent(text)

        self._track_model_usage(model)
        return result

    def generate_daily_plan(
        self,
        tasks: Iterable[Task],
        preferences: Optional[PlanPreferences] = None,
        model: str = DEFAULT_MODEL,
        today: Optional[date] = None,
    ) -> DailyPlan:
        today = today or date.today()
        preferences = preferences or PlanPreferences()

        try:
            ordered = sort_for_planning(tasks, today=today)
            user = prompts.DAILY_PLAN_USER_TEMPLATE.format(
                tasks=json.dumps([t.model_dump(by_alias=True) for t in ordered], ensure_ascii=False),
                today=today.isoformat(),
                preferences=preferences.model_dump_json(by_alias=True),
            )
            raw = self._complete(
                system=prompts.DAILY_PLAN_PROMPT,
                user=user,
                model=model,
                temperature=0.2,
                max_tokens=2000,
            )
            data = extract_json(raw, kind="object")
            if not isinstance(data, dict) or not isinstance(data.get("timeBlocks"), list):
                raise ResponseParseError("plan has no timeBlocks list")
            plan = DailyPlan.model_validate(data)
        except Exception as e:
            logger.warning(f"Daily plan generation failed, using fallback: {e}")
            return fallback_plan()

        if not plan.insights:
            plan.insights = [f"{len(plan.time_blocks)} blocks scheduled for {today.isoformat()}"]
        self._track_model_usage(model)
        return plan

    def provide_coaching(self, context: Dict[str, Any], model: str = DEFAULT_MODEL) -> List[AIInsight]:
        try:
            raw = self._complete(
                system=prompts.COACHING_PROMPT,
                user=f"User context: {json.dumps(context, ensure_ascii=False, default=str)}",
                model=model,
                temperature=0.8,
                max_tokens=600,
            )
            data = extract_json(raw, kind="array")
        except Exception as e:
            logger.warning(f"Coaching request failed, using fallback: {e}")
            return fallback_insights()

        insights: List[AIInsight] = []
        for item in data:
            try:
                insights.append(AIInsight.model_validate(item))
            except ValidationError:
                continue
            if len(insights) == 3:
                break

        if not insights:
            return fallback_insights()

        self._track_model_usage(model)
        return insights
