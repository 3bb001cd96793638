"""Settings loaded from environment variables.

Read once per process; tests build their own ``Settings`` instead of
touching the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"

    # LLM / OpenRouter
    llm_provider: str = "mock"
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    app_origin: str = "http://localhost:3000"
    app_title: str = "AI Productivity Assistant"
    llm_timeout_s: float = 30.0

    # Task store
    tasks_path: str = "data/tasks.json"
    calendar_function_url: str = "http://localhost:8000/functions/add-to-calendar"

    # Backend functions
    database_url: str = ""
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    stripe_secret_key: str = ""
    stripe_base_url: str = "https://api.stripe.com/v1"
    resend_api_key: str = ""
    resend_base_url: str = "https://api.resend.com"
    support_email_from: str = "support@aitaskmanagerpro.com"
    support_email_to: str = "support@aitaskmanagerpro.com"
    noreply_email_from: str = "noreply@aitaskmanagerpro.com"
    trial_days: int = 5
    http_timeout_s: float = 10.0

    @staticmethod
    def from_env() -> "Settings":
        api_key = _env("OPENROUTER_API_KEY") or None
        # Without a key the real provider cannot work; fall back to the offline one.
        provider = _env("LLM_PROVIDER", "openrouter" if api_key else "mock").lower()

        return Settings(
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            llm_provider=provider,
            openrouter_api_key=api_key,
            openrouter_base_url=_env("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
            app_origin=_env("APP_ORIGIN", "http://localhost:3000"),
            app_title=_env("APP_TITLE", "AI Productivity Assistant"),
            llm_timeout_s=_env_float("LLM_TIMEOUT_S", 30.0),
            tasks_path=_env("TASKS_PATH", "data/tasks.json"),
            calendar_function_url=_env(
                "CALENDAR_FUNCTION_URL", "http://localhost:8000/functions/add-to-calendar"
            ),
            database_url=_env("DATABASE_URL"),
            supabase_url=_env("SUPABASE_URL").rstrip("/"),
            supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
            stripe_secret_key=_env("STRIPE_SECRET_KEY"),
            stripe_base_url=_env("STRIPE_BASE_URL", "https://api.stripe.com/v1"),
            resend_api_key=_env("RESEND_API_KEY"),
            resend_base_url=_env("RESEND_BASE_URL", "https://api.resend.com"),
            support_email_from=_env("SUPPORT_EMAIL_FROM", "support@aitaskmanagerpro.com"),
            support_email_to=_env("SUPPORT_EMAIL_TO", "support@aitaskmanagerpro.com"),
            noreply_email_from=_env("NOREPLY_EMAIL_FROM", "noreply@aitaskmanagerpro.com"),
            trial_days=_env_int("TRIAL_DAYS", 5),
            http_timeout_s=_env_float("HTTP_TIMEOUT_S", 10.0),
        )

    @property
    def use_database(self) -> bool:
        return bool(self.database_url)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
