import asyncio
import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError

from api.dependencies import get_task_store
from api.metrics import LLM_CALLS_TOTAL, TASK_COUNT, observe_request
from storage.task_store import TaskNotFoundError, TaskStore
from zenith_tasks.models import CamelModel, Priority

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateTaskIn(CamelModel):
    title: str
    enhance: bool = True


class UpdateTaskIn(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    subtasks: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    estimated_time: Optional[str] = None
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    completed: Optional[bool] = None


class FilterIn(BaseModel):
    filter: str


class SortIn(CamelModel):
    sort_by: str


class SelectionIn(BaseModel):
    index: Optional[int] = None
    delta: Optional[int] = None


def _task_or_404(exc: TaskNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Task {exc.args[0]} not found")


def _listing(store: TaskStore) -> dict:
    s = store.state
    return {
        "tasks": [t.model_dump(by_alias=True) for t in store.visible_tasks()],
        "total": len(s.tasks),
        "filter": s.filter,
        "sortBy": s.sort_by,
        "syncStatus": s.sync_status,
        "syncError": s.sync_error,
        "selectedIndex": s.selected_index,
    }


@router.get("/tasks")
async def list_tasks(store: TaskStore = Depends(get_task_store)) -> dict:
    return _listing(store)


@router.post("/tasks")
async def create_task(payload: CreateTaskIn, store: TaskStore = Depends(get_task_store)) -> dict:
    start = time.time()
    if payload.enhance:
        LLM_CALLS_TOTAL.labels(operation="parse_natural_language").inc()
        LLM_CALLS_TOTAL.labels(operation="enhance_task").inc()

    task = await asyncio.to_thread(store.add_task, payload.title, payload.enhance)
    if task is None:
        observe_request("/tasks", "rejected", start)
        raise HTTPException(status_code=422, detail="Task title must not be empty")

    TASK_COUNT.set(len(store.tasks))
    observe_request("/tasks", "created", start)
    return task.model_dump(by_alias=True)


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: str, payload: UpdateTaskIn, store: TaskStore = Depends(get_task_store)
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    try:
        task = await asyncio.to_thread(store.update_task, task_id, **changes)
    except TaskNotFoundError as e:
        raise _task_or_404(e)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors())
    return task.model_dump(by_alias=True)


@router.post("/tasks/{task_id}/toggle")
async def toggle_task(task_id: str, store: TaskStore = Depends(get_task_store)) -> dict:
    try:
        task = await asyncio.to_thread(store.toggle_task, task_id)
    except TaskNotFoundError as e:
        raise _task_or_404(e)
    return task.model_dump(by_alias=True)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_task_store)) -> dict:
    try:
        await asyncio.to_thread(store.delete_task, task_id)
    except TaskNotFoundError as e:
        raise _task_or_404(e)
    TASK_COUNT.set(len(store.tasks))
    return {"status": "deleted", "id": task_id}


@router.put("/tasks/filter")
async def set_filter(payload: FilterIn, store: TaskStore = Depends(get_task_store)) -> dict:
    try:
        store.set_filter(payload.filter)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _listing(store)


@router.put("/tasks/sort")
async def set_sort(payload: SortIn, store: TaskStore = Depends(get_task_store)) -> dict:
    try:
        store.set_sort_by(payload.sort_by)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _listing(store)


@router.post("/tasks/sync")
async def force_sync(store: TaskStore = Depends(get_task_store)) -> dict:
    ok = await asyncio.to_thread(store.force_sync_all_tasks)
    return {"synced": ok, "syncStatus": store.state.sync_status, "syncError": store.state.sync_error}


@router.post("/tasks/reload")
async def reload_tasks(store: TaskStore = Depends(get_task_store)) -> dict:
    await asyncio.to_thread(store.load_tasks)
    TASK_COUNT.set(len(store.tasks))
    return _listing(store)


@router.get("/tasks/stats")
async def stats(store: TaskStore = Depends(get_task_store)) -> dict:
    return store.productivity_stats().model_dump(by_alias=True)


@router.post("/tasks/selection")
async def select(payload: SelectionIn, store: TaskStore = Depends(get_task_store)) -> dict:
    if payload.delta is not None:
        task = store.move_selection(payload.delta)
    else:
        task = store.select(payload.index)
    return {
        "selectedIndex": store.state.selected_index,
        "task": task.model_dump(by_alias=True) if task else None,
    }


# Focus timer


@router.post("/tasks/{task_id}/focus")
async def start_focus(task_id: str, store: TaskStore = Depends(get_task_store)) -> dict:
    try:
        timer = store.start_focus_timer(task_id)
    except TaskNotFoundError as e:
        raise _task_or_404(e)
    return timer.model_dump(by_alias=True)


@router.get("/focus")
async def get_focus(store: TaskStore = Depends(get_task_store)) -> dict:
    return store.state.focus_timer.model_dump(by_alias=True)


@router.post("/focus/pause")
async def pause_focus(store: TaskStore = Depends(get_task_store)) -> dict:
    return store.pause_focus_timer().model_dump(by_alias=True)


@router.post("/focus/stop")
async def stop_focus(store: TaskStore = Depends(get_task_store)) -> dict:
    return store.stop_focus_timer().model_dump(by_alias=True)


@router.post("/focus/tick")
async def tick_focus(seconds: int = 1, store: TaskStore = Depends(get_task_store)) -> dict:
    return store.tick_timer(seconds).model_dump(by_alias=True)
