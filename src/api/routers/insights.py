import asyncio
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_task_store
from api.metrics import LLM_CALLS_TOTAL
from storage.task_store import TaskStore

router = APIRouter(prefix="/insights")
logger = logging.getLogger(__name__)


def _dump(store: TaskStore) -> dict:
    return {"insights": [i.model_dump(by_alias=True) for i in store.state.insights]}


@router.get("")
async def get_insights(store: TaskStore = Depends(get_task_store)) -> dict:
    return _dump(store)


@router.post("/refresh")
async def refresh_insights(store: TaskStore = Depends(get_task_store)) -> dict:
    LLM_CALLS_TOTAL.labels(operation="provide_coaching").inc()
    await asyncio.to_thread(store.get_ai_insights)
    return _dump(store)


@router.post("/{insight_type}/apply")
async def apply_insight(insight_type: str, store: TaskStore = Depends(get_task_store)) -> dict:
    """Unknown insight types leave the view untouched."""
    store.apply_insight_action(insight_type)
    return {"filter": store.state.filter, "sortBy": store.state.sort_by}
