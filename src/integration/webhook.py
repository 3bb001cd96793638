"""Fire-and-forget task webhook (Zapier-style catch hooks)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

WEBHOOK_SOURCE = "ai-zenith-tasks"


class WebhookDispatch(BaseModel):
    """What is known after posting: whether the request left, never whether it landed."""

    url: str
    event: str
    sent: bool
    error: Optional[str] = None
    delivery_confirmed: bool = False


def build_webhook_body(task: Dict[str, Any], event: str = "task_created") -> Dict[str, Any]:
    return {
        "event": event,
        "task": task,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": WEBHOOK_SOURCE,
    }


async def notify_webhook(
    url: str,
    task: Dict[str, Any],
    event: str = "task_created",
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> WebhookDispatch:
    if not url:
        return WebhookDispatch(url="", event=event, sent=False, error="webhook URL is required")

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            # The response is not inspected; receivers answer opaquely.
            await client.post(url, json=build_webhook_body(task, event))
    except Exception as e:
        logger.error(f"Webhook dispatch to {url} failed: {e}")
        return WebhookDispatch(url=url, event=event, sent=False, error=str(e))

    logger.info(f"Webhook {event} dispatched to {url}")
    return WebhookDispatch(url=url, event=event, sent=True)
