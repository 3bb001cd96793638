import json

import httpx
import pytest

from api import state
from storage.subscriber_store import InMemorySubscriberRepo
from storage.task_repository import InMemoryTaskRepository
from zenith_tasks.config import Settings


class FakeProvider:
    def __init__(self, response_text):
        self._response_text = response_text
        self.calls = []

    def generate(self, *, system: str, user: str, model=None, temperature=0.2, max_tokens=None) -> str:
        self.calls.append({"system": system, "user": user, "model": model, "temperature": temperature})
        if isinstance(self._response_text, Exception):
            raise self._response_text
        return self._response_text


class ScriptedProvider(FakeProvider):
    """Answers by prompt kind: enhance, intent, plan, coaching."""

    MARKERS = [
        ("enhance", '"enhancedTitle"'),
        ("intent", '"dueTime"'),
        ("plan", '"timeBlocks"'),
        ("coaching", "productivity coach"),
    ]

    def __init__(self, responses: dict):
        super().__init__("")
        self.responses = responses

    def generate(self, *, system: str, user: str, model=None, temperature=0.2, max_tokens=None) -> str:
        self.calls.append({"system": system, "user": user, "model": model, "temperature": temperature})
        for kind, marker in self.MARKERS:
            if marker in system:
                reply = self.responses.get(kind, "")
                return reply if isinstance(reply, str) else json.dumps(reply)
        return ""


@pytest.fixture
def fake_provider_factory():
    def _make(response_text):
        return FakeProvider(response_text)
    return _make


@pytest.fixture
def scripted_provider_factory():
    def _make(**responses):
        return ScriptedProvider(responses)
    return _make


@pytest.fixture
def test_settings():
    return Settings(
        llm_provider="mock",
        tasks_path="",
        calendar_function_url="http://calendar.test/functions/add-to-calendar",
        supabase_url="http://supabase.test",
        supabase_service_role_key="service-key",
        stripe_secret_key="sk_test_123",
        stripe_base_url="http://stripe.test/v1",
        resend_api_key="re_test_123",
        resend_base_url="http://resend.test",
    )


@pytest.fixture
def install_services(test_settings):
    """Build the app's services around in-memory stores and a mock HTTP transport."""
    built = []

    def _install(handler=None, provider=None, tasks=None, opener=None):
        transport = httpx.MockTransport(handler or (lambda request: httpx.Response(404, json={})))
        services = state.build_services(
            settings=test_settings,
            provider=provider,
            repository=InMemoryTaskRepository(tasks or []),
            subscribers=InMemorySubscriberRepo(),
            transport=transport,
            opener=opener or (lambda url: None),
            sleep=lambda s: None,
        )
        state.set_services(services)
        built.append(services)
        return services

    yield _install
    state.set_services(None)
