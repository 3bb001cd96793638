import asyncio
import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_orchestrator
from api.metrics import LLM_CALLS_TOTAL, observe_request
from scheduling.daily_plan import DailyPlanOrchestrator, PlanStateError
from zenith_tasks.models import CamelModel

router = APIRouter(prefix="/plan")
logger = logging.getLogger(__name__)


class MoveBlockIn(CamelModel):
    active_id: str
    over_id: str


def _view(orchestrator: DailyPlanOrchestrator) -> dict:
    plan = orchestrator.plan
    return {
        "state": orchestrator.state,
        "plan": plan.model_dump(by_alias=True) if plan else None,
        "editedBlocks": [b.model_dump(by_alias=True) for b in orchestrator.edited_blocks],
    }


def _conflict(e: PlanStateError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


@router.get("")
async def get_plan(orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)) -> dict:
    return _view(orchestrator)


@router.post("/generate")
async def generate_plan(orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)) -> dict:
    start = time.time()
    LLM_CALLS_TOTAL.labels(operation="generate_daily_plan").inc()
    try:
        await asyncio.to_thread(orchestrator.generate)
    except PlanStateError as e:
        observe_request("/plan/generate", "conflict", start)
        raise _conflict(e)
    observe_request("/plan/generate", "ok", start)
    return _view(orchestrator)


@router.post("/edit")
async def start_editing(orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)) -> dict:
    try:
        orchestrator.start_editing()
    except PlanStateError as e:
        raise _conflict(e)
    return _view(orchestrator)


@router.post("/move")
async def move_block(
    payload: MoveBlockIn, orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)
) -> dict:
    try:
        orchestrator.move_block(payload.active_id, payload.over_id)
    except PlanStateError as e:
        raise _conflict(e)
    return _view(orchestrator)


@router.post("/save")
async def save_plan(orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)) -> dict:
    try:
        orchestrator.save()
    except PlanStateError as e:
        raise _conflict(e)
    return _view(orchestrator)


@router.post("/cancel")
async def cancel_edit(orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)) -> dict:
    try:
        orchestrator.cancel()
    except PlanStateError as e:
        raise _conflict(e)
    return _view(orchestrator)


@router.post("/sync-calendar")
async def sync_calendar(orchestrator: DailyPlanOrchestrator = Depends(get_orchestrator)) -> dict:
    try:
        result = await orchestrator.sync_to_calendar()
    except PlanStateError as e:
        raise _conflict(e)
    return result.model_dump()
