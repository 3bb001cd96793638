"""Client-side application state and the named actions that change it.

``TaskStore`` owns one ``TaskStoreState`` value. Every action builds a new
state from the current one and swaps it in; callers hold a reference to the
store, never to a state snapshot they intend to mutate. There is no locking:
the last write wins.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from llm.llm_client import DEFAULT_MODEL, LLMClient
from storage.task_repository import TaskRepository
from zenith_tasks.models import (
    PRIORITY_RANK,
    AIInsight,
    DailyPlan,
    FocusTimer,
    PlanPreferences,
    ProductivityStats,
    SortKey,
    SyncStatus,
    Task,
    TaskFilter,
)
from zenith_tasks.notifications import NotificationCenter

logger = logging.getLogger(__name__)

FILTERS = ("all", "pending", "completed", "today", "overdue")
SORT_KEYS = ("priority", "due_date", "created_at", "category")
FOCUS_SECONDS = 25 * 60


class TaskNotFoundError(KeyError):
    pass


class TaskStoreState(BaseModel):
    tasks: List[Task] = Field(default_factory=list)
    filter: TaskFilter = "all"
    sort_by: SortKey = "priority"
    sync_status: SyncStatus = "idle"
    sync_error: Optional[str] = None
    insights: List[AIInsight] = Field(default_factory=list)
    daily_plan: Optional[DailyPlan] = None
    selected_index: Optional[int] = None
    focus_timer: FocusTimer = Field(default_factory=FocusTimer)


def _valid_iso_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return None


class TaskStore:
    def __init__(
        self,
        llm: LLMClient,
        repository: TaskRepository,
        notifications: Optional[NotificationCenter] = None,
        sync_attempts: int = 3,
        retry_delay_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] = date.today,
    ):
        self.llm = llm
        self.repository = repository
        self.notifications = notifications or NotificationCenter()
        self.sync_attempts = max(1, sync_attempts)
        self.retry_delay_s = retry_delay_s
        self._sleep = sleep
        self._today = today
        self._state = TaskStoreState()

    # -- state plumbing ------------------------------------------------------

    @property
    def state(self) -> TaskStoreState:
        return self._state

    @property
    def tasks(self) -> List[Task]:
        return self._state.tasks

    def _set(self, **changes: Any) -> TaskStoreState:
        self._state = self._state.model_copy(update=changes)
        return self._state

    def get_task(self, task_id: str) -> Task:
        for task in self._state.tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    # -- persistence ---------------------------------------------------------

    def load_tasks(self) -> List[Task]:
        self._set(sync_status="syncing", sync_error=None)
        try:
            tasks = self.repository.load_all()
        except Exception as e:
            logger.error(f"Failed to load tasks: {e}")
            self._set(sync_status="error", sync_error=f"Failed to load tasks: {e}")
            self.notifications.error("Failed to Load Tasks", f"Error: {e}")
            return self._state.tasks

        self._set(tasks=tasks, sync_status="synced", sync_error=None)
        logger.info(f"Loaded {len(tasks)} tasks")
        return tasks

    def _sync_task(self, task: Task) -> bool:
        """Persist one task, retrying with exponential backoff."""
        self._set(sync_status="syncing")
        for attempt in range(1, self.sync_attempts + 1):
            try:
                self.repository.upsert(task)
                self._set(sync_status="synced", sync_error=None)
                return True
            except Exception as e:
                logger.error(f"Error syncing task {task.id} (attempt {attempt}): {e}")
                if attempt < self.sync_attempts:
                    self._sleep(self.retry_delay_s * 2 ** attempt)
                    continue
                self._set(
                    sync_status="error",
                    sync_error=f'Failed to save task "{task.title}": {e}',
                )
                self.notifications.error(
                    "Sync Failed",
                    f'Failed to save task "{task.title}". Your changes may be lost.',
                )
        return False

    def force_sync_all_tasks(self) -> bool:
        self._set(sync_status="syncing")
        results = [self._sync_task(task) for task in self._state.tasks]
        if all(results):
            self._set(sync_status="synced", sync_error=None)
            self.notifications.notify("Sync Complete", "All tasks have been synced successfully.")
            return True
        self._set(sync_status="error", sync_error="Failed to sync all tasks")
        return False

    # -- task actions --------------------------------------------------------

    def _due_date_for(self, parsed: Optional[str], deadline: Optional[str], priority: str) -> str:
        today = self._today()
        due = _valid_iso_date(parsed) or _valid_iso_date(deadline)
        if not due:
            due = (today if priority == "urgent" else today + timedelta(days=1)).isoformat()
        return max(due, today.isoformat())

    def add_task(self, text: str, enhance: bool = True) -> Optional[Task]:
        title = (text or "").strip()
        if not title:
            logger.warning("Empty task input, skipping")
            return None

        if enhance:
            intent = self.llm.parse_natural_language(title, today=self._today())
            enhancement = self.llm.enhance_task(title)
            task = Task(
                title=enhancement.enhanced_title or title,
                description=enhancement.description,
                subtasks=enhancement.subtasks,
                tags=intent.tags or enhancement.tags,
                priority=enhancement.priority,
                category=enhancement.category or "general",
                estimated_time=enhancement.estimated_time or "30 minutes",
                due_date=self._due_date_for(intent.due_date, enhancement.deadline, enhancement.priority),
                due_time=intent.due_time,
                ai_enhanced=True,
                ai_model_used=DEFAULT_MODEL,
            )
        else:
            task = Task(title=title)

        self._set(tasks=[task, *self._state.tasks])
        self._sync_task(task)
        self.notifications.notify("Task Created", f'"{task.title}" added successfully')
        return task

    def update_task(self, task_id: str, **changes: Any) -> Task:
        current = self.get_task(task_id)
        updated = Task.model_validate({**current.model_dump(), **changes, "id": current.id})
        self._set(tasks=[updated if t.id == task_id else t for t in self._state.tasks])
        self._sync_task(updated)
        return updated

    def toggle_task(self, task_id: str) -> Task:
        return self.update_task(task_id, completed=not self.get_task(task_id).completed)

    def delete_task(self, task_id: str) -> None:
        self.get_task(task_id)
        self._set(tasks=[t for t in self._state.tasks if t.id != task_id])
        self._clamp_selection()
        try:
            self.repository.delete(task_id)
        except Exception as e:
            logger.error(f"Error deleting task {task_id}: {e}")

    # -- filtering and sorting -----------------------------------------------

    def set_filter(self, name: str) -> None:
        if name not in FILTERS:
            raise ValueError(f"unknown filter: {name}")
        self._set(filter=name)
        self._clamp_selection()

    def set_sort_by(self, key: str) -> None:
        if key not in SORT_KEYS:
            raise ValueError(f"unknown sort key: {key}")
        self._set(sort_by=key)

    def visible_tasks(self) -> List[Task]:
        today = self._today()
        name = self._state.filter
        tasks = self._state.tasks
        if name == "pending":
            tasks = [t for t in tasks if not t.completed]
        elif name == "completed":
            tasks = [t for t in tasks if t.completed]
        elif name == "today":
            tasks = [t for t in tasks if t.due_date == today.isoformat()]
        elif name == "overdue":
            tasks = [t for t in tasks if t.is_overdue(today)]

        key = self._state.sort_by
        if key == "priority":
            return sorted(tasks, key=lambda t: PRIORITY_RANK[t.priority], reverse=True)
        if key == "due_date":
            return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or ""))
        if key == "category":
            return sorted(tasks, key=lambda t: t.category)
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    # -- keyboard selection --------------------------------------------------

    def _clamp_selection(self) -> None:
        index = self._state.selected_index
        if index is None:
            return
        count = len(self.visible_tasks())
        self._set(selected_index=None if count == 0 else min(index, count - 1))

    def select(self, index: Optional[int]) -> Optional[Task]:
        visible = self.visible_tasks()
        if index is None or not visible:
            self._set(selected_index=None)
            return None
        index = max(0, min(index, len(visible) - 1))
        self._set(selected_index=index)
        return visible[index]

    def move_selection(self, delta: int) -> Optional[Task]:
        current = self._state.selected_index
        start = -1 if delta > 0 else len(self.visible_tasks())
        return self.select((start if current is None else current) + delta)

    def selected_task(self) -> Optional[Task]:
        index = self._state.selected_index
        visible = self.visible_tasks()
        if index is None or index >= len(visible):
            return None
        return visible[index]

    # -- AI features ---------------------------------------------------------

    def generate_daily_plan(self, preferences: Optional[PlanPreferences] = None) -> DailyPlan:
        pending = [t for t in self._state.tasks if not t.completed]
        plan = self.llm.generate_daily_plan(pending, preferences or PlanPreferences(), today=self._today())
        self._set(daily_plan=plan)
        return plan

    def update_daily_plan(self, plan: DailyPlan) -> None:
        self._set(daily_plan=plan)

    def get_ai_insights(self) -> List[AIInsight]:
        tasks = self._state.tasks
        completed = [t for t in tasks if t.completed]
        context: Dict[str, Any] = {
            "totalTasks": len(tasks),
            "completedTasks": len(completed),
            "pendingTasks": len(tasks) - len(completed),
            "aiEnhancedTasks": len([t for t in tasks if t.ai_enhanced]),
            "categories": sorted({t.category for t in tasks}),
            "recentActivity": [t.model_dump(by_alias=True) for t in tasks[-10:]],
        }
        insights = self.llm.provide_coaching(context)
        self._set(insights=insights)
        return insights

    def apply_insight_action(self, insight_type: str) -> None:
        if insight_type == "productivity":
            self.set_sort_by("priority")
            self.set_filter("pending")
        elif insight_type == "pattern":
            self.set_sort_by("category")
        elif insight_type == "suggestion":
            self.set_filter("today")

    def productivity_stats(self) -> ProductivityStats:
        tasks = self._state.tasks
        today = self._today()
        completed = [t for t in tasks if t.completed]
        week_ago = datetime.combine(today - timedelta(days=7), datetime.min.time()).isoformat()
        return ProductivityStats(
            total_tasks=len(tasks),
            completed_tasks=len(completed),
            ai_enhanced_tasks=len([t for t in tasks if t.ai_enhanced]),
            overdue_tasks=len([t for t in tasks if t.is_overdue(today)]),
            productivity_score=round(len(completed) / max(len(tasks), 1) * 100),
            tasks_this_week=len([t for t in tasks if t.created_at > week_ago]),
        )

    # -- focus timer ---------------------------------------------------------

    def start_focus_timer(self, task_id: str) -> FocusTimer:
        self.get_task(task_id)
        timer = FocusTimer(task_id=task_id, is_active=True, time_left=FOCUS_SECONDS)
        self._set(focus_timer=timer)
        return timer

    def pause_focus_timer(self) -> FocusTimer:
        timer = self._state.focus_timer.model_copy(update={"is_active": False})
        self._set(focus_timer=timer)
        return timer

    def stop_focus_timer(self) -> FocusTimer:
        timer = FocusTimer()
        self._set(focus_timer=timer)
        return timer

    def tick_timer(self, seconds: int = 1) -> FocusTimer:
        timer = self._state.focus_timer
        if not timer.is_active or timer.time_left <= 0:
            return timer
        left = max(0, timer.time_left - seconds)
        timer = timer.model_copy(update={"time_left": left, "is_active": left > 0})
        self._set(focus_timer=timer)
        return timer
