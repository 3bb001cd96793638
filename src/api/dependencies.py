from scheduling.daily_plan import DailyPlanOrchestrator
from storage.task_store import TaskStore
from zenith_tasks.notifications import NotificationCenter
from api import state


def get_services() -> state.Services:
    return state.get_services()


def get_task_store() -> TaskStore:
    return state.get_services().store


def get_orchestrator() -> DailyPlanOrchestrator:
    return state.get_services().orchestrator


def get_notifications() -> NotificationCenter:
    return state.get_services().notifications
