"""Minimal Stripe REST client: the three calls billing needs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from zenith_tasks.config import Settings, get_settings
from zenith_tasks.steps import FunctionError

logger = logging.getLogger(__name__)


class StripeError(FunctionError):
    pass


class StripeClient:
    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.settings.stripe_secret_key:
            raise StripeError("STRIPE_SECRET_KEY is not set")

        async with httpx.AsyncClient(
            base_url=self.settings.stripe_base_url,
            auth=(self.settings.stripe_secret_key, ""),
            timeout=self.settings.http_timeout_s,
            transport=self._transport,
        ) as client:
            # Stripe takes form-encoded bodies.
            resp = await client.request(method, path, params=params, data=data)

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400:
            message = (body.get("error") or {}).get("message") or f"Stripe returned {resp.status_code}"
            logger.error(f"Stripe {method} {path} failed: {message}")
            raise StripeError(message)
        return body

    async def list_customers(self, email: str, limit: int = 1) -> List[Dict[str, Any]]:
        body = await self._request("GET", "/customers", params={"email": email, "limit": limit})
        return body.get("data", [])

    async def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/customers/{customer_id}")

    async def list_subscriptions(self, customer_id: str, status: str = "active", limit: int = 1) -> List[Dict[str, Any]]:
        body = await self._request(
            "GET",
            "/subscriptions",
            params={"customer": customer_id, "status": status, "limit": limit},
        )
        return body.get("data", [])

    async def create_portal_session(self, customer_id: str, return_url: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/billing_portal/sessions",
            data={"customer": customer_id, "return_url": return_url},
        )
