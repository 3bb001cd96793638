from __future__ import annotations

from typing import Optional

import httpx

from zenith_tasks.config import Settings, get_settings
from .base import LLMProvider


class OpenRouterProvider(LLMProvider):
    """OpenAI-compatible chat completions served by OpenRouter."""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.BaseTransport] = None):
        settings = settings or get_settings()
        self.api_key = (settings.openrouter_api_key or "").strip()
        self.base_url = settings.openrouter_base_url.rstrip("/")
        self.timeout = settings.llm_timeout_s
        self.headers = {
            "HTTP-Referer": settings.app_origin,
            "X-Title": settings.app_title,
        }
        self._transport = transport

        if not self.api_key:
            raise RuntimeError("OPENROUTER_API_KEY is missing")

    def generate(
        self,
        *,
        system: str,
        user: str,
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
    ) -> str:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            **self.headers,
        }
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            r = client.post(url, headers=headers, json=payload)
            r.raise_for_status()
            data = r.json()

        return data["choices"][0]["message"]["content"] or ""
