from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol

from zenith_tasks.models import Task

logger = logging.getLogger(__name__)


class TaskRepository(Protocol):
    def load_all(self) -> List[Task]: ...
    def upsert(self, task: Task) -> None: ...
    def delete(self, task_id: str) -> None: ...


class TaskFileError(RuntimeError):
    """The task file exists but cannot be read back as a JSON list."""


class JsonTaskRepository:
    """Tasks persisted as a JSON list on local disk."""

    def __init__(self, path: str = "data/tasks.json"):
        self.path = Path(path)

    def _read_raw(self) -> List[Dict[str, Any]]:
        """Raw records on disk. A missing file is empty; an unreadable one raises."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise TaskFileError(f"Failed to read tasks from {self.path}: {e}") from e
        if not isinstance(data, list):
            raise TaskFileError(f"Task file {self.path} does not hold a list")
        return data

    def load_all(self) -> List[Task]:
        """Load tasks from disk, newest first. Records that fail validation are skipped."""
        tasks = []
        for raw in self._read_raw():
            try:
                tasks.append(Task.model_validate(raw))
            except Exception as e:
                logger.warning(f"Skipping unreadable task record: {e}")
        tasks.sort(key=lambda t: t.created_at, reverse=True)
        return tasks

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    # Writes work on the raw records so that entries failing validation survive a save.

    def upsert(self, task: Task) -> None:
        records = [r for r in self._read_raw() if not (isinstance(r, dict) and r.get("id") == task.id)]
        records.append(task.model_dump(by_alias=True))
        self._write(records)

    def delete(self, task_id: str) -> None:
        records = self._read_raw()
        remaining = [r for r in records if not (isinstance(r, dict) and r.get("id") == task_id)]
        if len(remaining) != len(records):
            self._write(remaining)


class InMemoryTaskRepository:
    def __init__(self, tasks: List[Task] | None = None):
        self.tasks = {t.id: t for t in tasks or []}

    def load_all(self) -> List[Task]:
        return sorted(self.tasks.values(), key=lambda t: t.created_at, reverse=True)

    def upsert(self, task: Task) -> None:
        self.tasks[task.id] = task

    def delete(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)
