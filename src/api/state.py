"""Process-wide services, built lazily on first use.

Tests swap the whole bundle with ``set_services``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from integration.calendar_sync import CalendarSyncAdapter
from integration.resend_client import ResendClient
from integration.stripe_client import StripeClient
from integration.supabase_auth import SupabaseAuthClient
from llm.llm_client import LLMClient, get_provider
from llm.providers.base import LLMProvider
from scheduling.daily_plan import DailyPlanOrchestrator
from storage.subscriber_store import InMemorySubscriberRepo, PostgresSubscriberRepo, SubscriberRepo
from storage.task_repository import InMemoryTaskRepository, JsonTaskRepository, TaskRepository
from storage.task_store import TaskStore
from zenith_tasks.config import Settings, get_settings
from zenith_tasks.notifications import NotificationCenter

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    notifications: NotificationCenter
    llm: LLMClient
    store: TaskStore
    orchestrator: DailyPlanOrchestrator
    calendar: CalendarSyncAdapter
    subscribers: SubscriberRepo
    auth: SupabaseAuthClient
    stripe: StripeClient
    resend: ResendClient
    transport: Optional[httpx.AsyncBaseTransport] = None


_services: Optional[Services] = None


def build_services(
    settings: Optional[Settings] = None,
    provider: Optional[LLMProvider] = None,
    repository: Optional[TaskRepository] = None,
    subscribers: Optional[SubscriberRepo] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    opener=None,
    **store_kwargs,
) -> Services:
    settings = settings or get_settings()
    notifications = NotificationCenter()

    if repository is None:
        repository = JsonTaskRepository(settings.tasks_path) if settings.tasks_path else InMemoryTaskRepository()
    if subscribers is None:
        if settings.use_database:
            subscribers = PostgresSubscriberRepo()
        else:
            logger.warning("DATABASE_URL not set; subscribers are kept in memory")
            subscribers = InMemorySubscriberRepo()

    llm = LLMClient(provider if provider is not None else get_provider(settings))
    store = TaskStore(llm, repository, notifications, **store_kwargs)
    store.load_tasks()
    calendar = CalendarSyncAdapter(settings, transport=transport, opener=opener, notifications=notifications)

    return Services(
        settings=settings,
        notifications=notifications,
        llm=llm,
        store=store,
        orchestrator=DailyPlanOrchestrator(store, calendar, notifications),
        calendar=calendar,
        subscribers=subscribers,
        auth=SupabaseAuthClient(settings, transport=transport),
        stripe=StripeClient(settings, transport=transport),
        resend=ResendClient(settings, transport=transport),
        transport=transport,
    )


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Optional[Services]) -> None:
    global _services
    _services = services
