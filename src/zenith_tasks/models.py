from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


Priority = Literal["low", "medium", "high", "urgent"]
InsightType = Literal["productivity", "pattern", "suggestion", "warning"]
SyncStatus = Literal["idle", "syncing", "synced", "error"]
TaskFilter = Literal["all", "pending", "completed", "today", "overdue"]
SortKey = Literal["priority", "due_date", "created_at", "category"]

PRIORITIES = ("low", "medium", "high", "urgent")
PRIORITY_RANK = {"urgent": 4, "high": 3, "medium": 2, "low": 1}


def normalize_priority(value: Any) -> str:
    """Map whatever the model produced onto the four known priorities."""
    if isinstance(value, str) and value.strip().lower() in PRIORITIES:
        return value.strip().lower()
    return "medium"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire (the front end speaks camelCase)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    subtasks: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    priority: Priority = "medium"
    category: str = "general"
    estimated_time: str = "30 minutes"

    due_date: Optional[str] = None  # YYYY-MM-DD
    due_time: Optional[str] = None  # HH:MM

    completed: bool = False
    ai_enhanced: bool = False
    ai_model_used: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("title must not be blank")
        return v2

    @field_validator("priority", mode="before")
    @classmethod
    def known_priority(cls, v: Any) -> str:
        return normalize_priority(v)

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.completed or not self.due_date:
            return False
        today = today or date.today()
        return self.due_date < today.isoformat()


class TaskEnhancement(CamelModel):
    original_task: str = ""
    enhanced_title: str = ""
    description: str = ""
    subtasks: List[str] = Field(default_factory=list)
    priority: Priority = "medium"
    estimated_time: str = "30 minutes"
    category: str = "general"
    deadline: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def known_priority(cls, v: Any) -> str:
        return normalize_priority(v)

    @field_validator("subtasks", "dependencies", "tags", mode="before")
    @classmethod
    def string_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v if item]

    @model_validator(mode="after")
    def fill_required_text(self) -> "TaskEnhancement":
        if not self.enhanced_title.strip():
            self.enhanced_title = self.original_task
        if not self.subtasks:
            self.subtasks = [self.enhanced_title or self.original_task]
        if not self.estimated_time:
            self.estimated_time = "30 minutes"
        if not self.category:
            self.category = "general"
        return self


class NaturalLanguageIntent(CamelModel):
    title: str
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    priority: Priority = "medium"
    tags: List[str] = Field(default_factory=list)
    people: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    recurring: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def known_priority(cls, v: Any) -> str:
        return normalize_priority(v)

    @field_validator("tags", "people", mode="before")
    @classmethod
    def string_list(cls, v: Any) -> List[str]:
        if not v:
            return []
        return [str(item) for item in v]


class TimeBlock(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = None
    start_time: str = ""
    end_time: str = ""
    task_id: Optional[str] = None
    task: str = ""
    description: str = ""
    type: str = "focused work"
    energy: str = "medium"
    priority: Priority = "medium"

    @field_validator("priority", mode="before")
    @classmethod
    def known_priority(cls, v: Any) -> str:
        return normalize_priority(v)

    @field_validator("task_id", "id", mode="before")
    @classmethod
    def id_as_text(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class DailyPlan(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    time_blocks: List[TimeBlock] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    total_focus_time: str = "0 hours"
    productivity_score: int = Field(0, ge=0, le=100)
    daily_summary: Optional[Dict[str, Any]] = None

    @field_validator("productivity_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        try:
            score = int(round(float(v)))
        except (TypeError, ValueError):
            return 0
        return max(0, min(100, score))

    @field_validator("insights", "recommendations", mode="before")
    @classmethod
    def text_list(cls, v: Any) -> List[str]:
        if not v:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v]

    @model_validator(mode="after")
    def unique_block_ids(self) -> "DailyPlan":
        """Every block gets an id no other block in the plan shares."""
        taken = {b.id for b in self.time_blocks if b.id}
        seen: set = set()
        for index, block in enumerate(self.time_blocks):
            if block.id and block.id not in seen:
                seen.add(block.id)
                continue
            n = index
            while f"block-{n}" in taken:
                n += 1
            block.id = f"block-{n}"
            taken.add(block.id)
            seen.add(block.id)
        return self


class PlanPreferences(CamelModel):
    working_hours: Dict[str, str] = Field(
        default_factory=lambda: {"start": "09:00", "end": "17:00"}
    )
    energy_levels: Dict[str, str] = Field(
        default_factory=lambda: {"morning": "high", "afternoon": "medium", "evening": "low"}
    )


class AIInsight(CamelModel):
    type: InsightType = "suggestion"
    title: str = Field(..., min_length=1)
    description: str = ""
    actionable: bool = False
    priority: int = 3

    @field_validator("type", mode="before")
    @classmethod
    def known_type(cls, v: Any) -> str:
        if isinstance(v, str) and v in ("productivity", "pattern", "suggestion", "warning"):
            return v
        return "suggestion"


class SubscriptionInfo(BaseModel):
    """Access state of one account. Keys stay snake_case, as the function returns them."""

    subscribed: bool = False
    subscription_tier: Optional[str] = None
    subscription_end: Optional[str] = None
    trial_active: bool = False
    trial_end: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def has_access(self) -> bool:
        return self.subscribed or self.trial_active


class FocusTimer(CamelModel):
    task_id: Optional[str] = None
    is_active: bool = False
    time_left: int = 25 * 60
    type: Literal["focus", "break"] = "focus"


class ProductivityStats(CamelModel):
    total_tasks: int
    completed_tasks: int
    ai_enhanced_tasks: int
    overdue_tasks: int
    productivity_score: int
    tasks_this_week: int


class CalendarEventRequest(CamelModel):
    task_id: str
    title: str
    description: Optional[str] = None
    due_date: str
    due_time: Optional[str] = None
    estimated_time: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    is_update: Optional[bool] = None


class CalendarEventResponse(CamelModel):
    success: bool = True
    ical_content: str
    google_calendar_url: str
    message: str = "Calendar event created successfully"


class SupportEmailRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
