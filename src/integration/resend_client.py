from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from zenith_tasks.config import Settings, get_settings
from zenith_tasks.steps import FunctionError

logger = logging.getLogger(__name__)


class ResendError(FunctionError):
    pass


class ResendClient:
    """Sends transactional email through the Resend REST API."""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._transport = transport

    async def send_email(self, *, sender: str, to: List[str], subject: str, html: str) -> Optional[str]:
        if not self.settings.resend_api_key:
            raise ResendError("RESEND_API_KEY is not configured")

        async with httpx.AsyncClient(
            base_url=self.settings.resend_base_url,
            timeout=self.settings.http_timeout_s,
            transport=self._transport,
        ) as client:
            resp = await client.post(
                "/emails",
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
                json={"from": sender, "to": to, "subject": subject, "html": html},
            )

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400:
            raise ResendError(body.get("message") or f"Resend returned {resp.status_code}")
        return body.get("id")
