from datetime import datetime, timedelta, timezone

import httpx
import pytest

from billing.subscription import check_subscription
from integration.stripe_client import StripeClient, StripeError
from integration.supabase_auth import AuthUser
from storage.subscriber_store import InMemorySubscriberRepo, SubscriberRecord
from zenith_tasks.config import Settings

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
STRIPE_SETTINGS = Settings(stripe_secret_key="sk_test_1", stripe_base_url="http://stripe.test/v1")
USER = AuthUser(id="user-1", email="ana@example.com")


def stripe_with(customers=(), subscriptions=(), calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append((request.method, request.url.path, dict(request.url.params)))
        if request.url.path.endswith("/customers"):
            return httpx.Response(200, json={"data": list(customers)})
        if request.url.path.endswith("/subscriptions"):
            return httpx.Response(200, json={"data": list(subscriptions)})
        return httpx.Response(404, json={"error": {"message": "No such resource"}})

    return StripeClient(STRIPE_SETTINGS, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_new_user_gets_trial_once():
    repo = InMemorySubscriberRepo()
    stripe = stripe_with()

    first = await check_subscription(USER, repo, stripe, trial_days=5, now=NOW)
    second = await check_subscription(USER, repo, stripe, trial_days=5, now=NOW + timedelta(hours=1))

    assert first.trial_active is True
    assert second.trial_active is True
    assert first.trial_end == second.trial_end == (NOW + timedelta(days=5)).isoformat()
    assert first.has_access and second.has_access
    assert first.subscribed is False


@pytest.mark.asyncio
async def test_expired_trial_loses_access():
    repo = InMemorySubscriberRepo()
    await repo.upsert(SubscriberRecord(
        email=USER.email, user_id=USER.id, trial_active=True, trial_end=NOW - timedelta(days=1)
    ))
    info = await check_subscription(USER, repo, stripe_with(), now=NOW)
    assert info.trial_active is False
    assert info.has_access is False


@pytest.mark.asyncio
async def test_active_stripe_subscription_is_pro_and_ends_trial():
    repo = InMemorySubscriberRepo()
    period_end = int((NOW + timedelta(days=30)).timestamp())
    stripe = stripe_with(
        customers=[{"id": "cus_123"}],
        subscriptions=[{"id": "sub_1", "current_period_end": period_end}],
    )
    info = await check_subscription(USER, repo, stripe, now=NOW)

    assert info.subscribed is True
    assert info.subscription_tier == "pro"
    assert info.subscription_end == datetime.fromtimestamp(period_end, tz=timezone.utc).isoformat()
    assert info.has_access is True

    stored = await repo.get(USER.id)
    assert stored.stripe_customer_id == "cus_123"
    assert stored.trial_active is False


@pytest.mark.asyncio
async def test_customer_without_active_subscription_is_free():
    repo = InMemorySubscriberRepo()
    info = await check_subscription(USER, repo, stripe_with(customers=[{"id": "cus_9"}]), now=NOW)
    assert info.subscribed is False
    assert info.subscription_tier == "free"
    assert info.trial_active is True


@pytest.mark.asyncio
async def test_manual_subscription_takes_precedence():
    repo = InMemorySubscriberRepo()
    end = NOW + timedelta(days=365)
    await repo.upsert(SubscriberRecord(
        email=USER.email,
        user_id=USER.id,
        subscribed=True,
        subscription_tier="enterprise",
        subscription_end=end,
        stripe_customer_id="manual_test_customer",
    ))
    calls = []
    info = await check_subscription(USER, repo, stripe_with(customers=[{"id": "cus_1"}], calls=calls), now=NOW)

    assert info.subscribed is True
    assert info.subscription_tier == "enterprise"
    assert info.subscription_end == end.isoformat()
    assert info.has_access is True
    assert not any(path.endswith("/subscriptions") for _, path, _ in calls)
    stored = await repo.get(USER.id)
    assert stored.subscription_tier == "enterprise"


@pytest.mark.asyncio
async def test_customer_lookup_uses_email_limit_one():
    calls = []
    await check_subscription(USER, InMemorySubscriberRepo(), stripe_with(calls=calls), now=NOW)
    method, path, params = calls[0]
    assert (method, path) == ("GET", "/v1/customers")
    assert params == {"email": "ana@example.com", "limit": "1"}


@pytest.mark.asyncio
async def test_stripe_errors_propagate():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Invalid API Key provided"}})

    stripe = StripeClient(STRIPE_SETTINGS, transport=httpx.MockTransport(handler))
    with pytest.raises(StripeError, match="Invalid API Key"):
        await check_subscription(USER, InMemorySubscriberRepo(), stripe, now=NOW)


@pytest.mark.asyncio
async def test_changed_email_keeps_the_same_trial():
    repo = InMemorySubscriberRepo()
    stripe = stripe_with()
    renamed = AuthUser(id=USER.id, email="ana.new@example.com")

    first = await check_subscription(USER, repo, stripe, trial_days=5, now=NOW)
    later = await check_subscription(renamed, repo, stripe, trial_days=5, now=NOW + timedelta(days=9))

    assert later.trial_active is False
    assert later.trial_end == first.trial_end
    assert list(repo.rows) == [USER.id]
    assert repo.rows[USER.id].email == "ana.new@example.com"
