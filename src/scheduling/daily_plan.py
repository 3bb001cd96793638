"""Daily-plan lifecycle: generate, reorder time blocks, save, push to calendar.

States::

    empty -> generating -> ready
    ready -> editing -> ready     (save or cancel)
    ready -> generating           (regenerate)
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Callable, Iterable, List, Literal, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field

from integration.calendar_sync import CalendarSyncAdapter
from storage.task_store import TaskStore
from zenith_tasks.models import DailyPlan, Task, TimeBlock
from zenith_tasks.notifications import NotificationCenter

logger = logging.getLogger(__name__)

PlanState = Literal["empty", "generating", "ready", "editing"]

T = TypeVar("T")

_WORD_RE = re.compile(r"[a-z0-9]+")


class PlanStateError(RuntimeError):
    pass


class PlanCalendarResult(BaseModel):
    requested: int = 0
    unmatched: int = 0
    failed: int = 0
    urls: List[str] = Field(default_factory=list)
    opened: Optional[str] = None


def array_move(items: Sequence[T], from_index: int, to_index: int) -> List[T]:
    """Move one element to a new position; everything else keeps its relative order."""
    out = list(items)
    if not 0 <= from_index < len(out):
        return out
    to_index = max(0, min(to_index, len(out) - 1))
    out.insert(to_index, out.pop(from_index))
    return out


def block_key(block: TimeBlock, index: int) -> str:
    return block.id or f"block-{index}"


def _words(text: str) -> set:
    return set(_WORD_RE.findall(text.lower()))


def match_task(block: TimeBlock, tasks: Iterable[Task]) -> Optional[Task]:
    """First task whose title matches the block label.

    Exact title wins; otherwise a case-insensitive containment check in either
    direction, first on the raw text and then on the word sets.
    """
    label = block.task.strip()
    if not label:
        return None
    tasks = list(tasks)

    for task in tasks:
        if task.title == label:
            return task

    lowered = label.lower()
    for task in tasks:
        title = task.title.lower()
        if title in lowered or lowered in title:
            return task

    label_words = _words(label)
    for task in tasks:
        title_words = _words(task.title)
        if title_words and label_words and (title_words <= label_words or label_words <= title_words):
            return task
    return None


def _block_minutes(block: TimeBlock) -> int:
    try:
        start = datetime.strptime(block.start_time, "%H:%M")
        end = datetime.strptime(block.end_time, "%H:%M")
    except ValueError:
        return 90
    minutes = int((end - start).total_seconds() // 60)
    return minutes if minutes > 0 else 90


class DailyPlanOrchestrator:
    def __init__(
        self,
        store: TaskStore,
        calendar: Optional[CalendarSyncAdapter] = None,
        notifications: Optional[NotificationCenter] = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.calendar = calendar
        self.notifications = notifications or store.notifications
        self._today = today
        self.state: PlanState = "ready" if store.state.daily_plan else "empty"
        self.edited_blocks: List[TimeBlock] = []

    @property
    def plan(self) -> Optional[DailyPlan]:
        return self.store.state.daily_plan

    def _require(self, *allowed: str) -> None:
        if self.state not in allowed:
            raise PlanStateError(f"cannot do this while plan is {self.state}")

    def generate(self) -> DailyPlan:
        self._require("empty", "ready")
        previous = self.state
        self.state = "generating"
        try:
            plan = self.store.generate_daily_plan()
        except Exception:
            self.state = previous
            raise
        self.state = "ready"
        self.edited_blocks = []
        self.notifications.notify(
            "Daily Plan Ready!", f"{len(plan.time_blocks)} time blocks scheduled."
        )
        return plan

    def start_editing(self) -> List[TimeBlock]:
        self._require("ready")
        self.edited_blocks = [b.model_copy(deep=True) for b in self.plan.time_blocks]
        self.state = "editing"
        return self.edited_blocks

    def move_block(self, active_id: str, over_id: str) -> List[TimeBlock]:
        self._require("editing")
        if active_id == over_id:
            return self.edited_blocks
        keys = [block_key(b, i) for i, b in enumerate(self.edited_blocks)]
        if active_id not in keys or over_id not in keys:
            logger.debug(f"Ignoring move of unknown block {active_id} -> {over_id}")
            return self.edited_blocks
        self.edited_blocks = array_move(self.edited_blocks, keys.index(active_id), keys.index(over_id))
        return self.edited_blocks

    def save(self) -> DailyPlan:
        self._require("editing")
        plan = self.plan.model_copy(update={"time_blocks": list(self.edited_blocks)})
        self.store.update_daily_plan(plan)
        self.edited_blocks = []
        self.state = "ready"
        return plan

    def cancel(self) -> DailyPlan:
        self._require("editing")
        self.edited_blocks = []
        self.state = "ready"
        return self.plan

    async def sync_to_calendar(self, tasks: Optional[Iterable[Task]] = None) -> PlanCalendarResult:
        """Request one calendar link per matched block, then open the first link."""
        self._require("ready", "editing")
        if self.calendar is None:
            raise PlanStateError("no calendar adapter configured")

        tasks = list(tasks if tasks is not None else self.store.tasks)
        result = PlanCalendarResult()
        today = self._today().isoformat()

        for index, block in enumerate(self.plan.time_blocks):
            task = match_task(block, tasks)
            if task is None:
                result.unmatched += 1
                continue

            minutes = _block_minutes(block)
            payload = self.calendar.build_payload(task)
            payload.update(
                dueDate=today,
                dueTime=block.start_time or payload["dueTime"],
                estimatedTime=f"{minutes} minutes",
            )
            result.requested += 1
            try:
                url = await self.calendar.request_link(payload)
            except Exception as e:
                logger.error(f"Calendar link for block {block_key(block, index)} failed: {e}")
                result.failed += 1
                continue
            if url:
                result.urls.append(url)

        if result.urls:
            result.opened = result.urls[0]
            self.calendar.open_link(result.opened)
            self.notifications.notify(
                "Calendar Sync Started",
                f"Created {len(result.urls)} calendar events; opened the first one.",
            )
        else:
            self.notifications.error("Sync Failed", "Failed to sync to Google Calendar. Please try again.")
        return result
