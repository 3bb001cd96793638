import logging

from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.dependencies import get_notifications, get_services
from api.metrics import TASK_COUNT
from api.state import Services
from storage import db
from zenith_tasks.notifications import NotificationCenter

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(services: Services = Depends(get_services)) -> dict:
    """Health check endpoint for container orchestration."""
    health = {
        "status": "healthy",
        "llm_provider": services.settings.llm_provider,
        "tasks": len(services.store.tasks),
        "sync_status": services.store.state.sync_status,
    }

    if services.settings.use_database:
        db_health = await db.health_check()
        health["database"] = db_health
        if db_health["status"] != "healthy":
            health["status"] = "degraded"

    return health


@router.get("/metrics")
async def metrics(services: Services = Depends(get_services)) -> Response:
    """Prometheus scrape endpoint."""
    TASK_COUNT.set(len(services.store.tasks))
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/notifications")
async def notifications(limit: int = 20, center: NotificationCenter = Depends(get_notifications)) -> dict:
    return {"notifications": [n.model_dump() for n in center.recent(limit)]}


@router.delete("/notifications")
async def clear_notifications(center: NotificationCenter = Depends(get_notifications)) -> dict:
    center.clear()
    return {"status": "cleared"}


@router.get("/llm/usage")
async def llm_usage(services: Services = Depends(get_services)) -> dict:
    return {"usage": services.llm.get_model_usage_stats()}
