from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from zenith_tasks.config import Settings, get_settings
from zenith_tasks.steps import FunctionError

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise FunctionError("No authorization header provided")
    return authorization.replace("Bearer ", "", 1).strip()


class SupabaseAuthClient:
    """Resolves an access token to its user via GoTrue's ``/auth/v1/user``."""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._transport = transport

    async def get_user(self, token: str) -> AuthUser:
        if not self.settings.supabase_url:
            raise FunctionError("Authentication error: SUPABASE_URL is not set")

        async with httpx.AsyncClient(timeout=self.settings.http_timeout_s, transport=self._transport) as client:
            resp = await client.get(
                f"{self.settings.supabase_url}/auth/v1/user",
                headers={
                    "apikey": self.settings.supabase_service_role_key,
                    "Authorization": f"Bearer {token}",
                },
            )

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400:
            message = body.get("msg") or body.get("message") or f"status {resp.status_code}"
            raise FunctionError(f"Authentication error: {message}")

        user = AuthUser.model_validate(body)
        if not user.email:
            raise FunctionError("User not authenticated or email not available")
        return user
