"""Subscription check: trial bookkeeping plus Stripe lookup.

A subscription entered by hand in the subscribers table (subscribed, with a
tier other than ``free``) wins over whatever Stripe says.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from integration.stripe_client import StripeClient
from integration.supabase_auth import AuthUser
from storage.subscriber_store import SubscriberRecord, SubscriberRepo
from zenith_tasks.models import SubscriptionInfo
from zenith_tasks.steps import StepLogger

logger = logging.getLogger(__name__)

log_step = StepLogger("check-subscription")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def is_manual_subscription(record: Optional[SubscriberRecord]) -> bool:
    return bool(record and record.subscribed and (record.subscription_tier or "free") != "free")


async def check_subscription(
    user: AuthUser,
    repo: SubscriberRepo,
    stripe: StripeClient,
    trial_days: int = 5,
    now: Optional[datetime] = None,
) -> SubscriptionInfo:
    now = now or datetime.now(timezone.utc)
    email = user.email or ""

    subscriber = await repo.get(user.id)
    if subscriber:
        trial_end = subscriber.trial_end
        trial_active = bool(subscriber.trial_active and trial_end and trial_end > now)
        log_step("Found subscriber record", {
            "isTrialActive": trial_active,
            "trialEnd": _iso(trial_end),
            "subscribed": subscriber.subscribed,
        })
    else:
        log_step("No subscriber record found, creating new trial")
        trial_end = now + timedelta(days=trial_days)
        trial_active = True
        await repo.upsert(SubscriberRecord(
            email=email,
            user_id=user.id,
            subscribed=False,
            subscription_tier="free",
            trial_start=now,
            trial_end=trial_end,
            trial_active=True,
        ))
        log_step("Created new trial", {"trialEnd": _iso(trial_end)})

    if is_manual_subscription(subscriber):
        log_step("Found manual subscription in DB, respecting it", {
            "tier": subscriber.subscription_tier,
            "end": _iso(subscriber.subscription_end),
        })
        return SubscriptionInfo(
            subscribed=True,
            subscription_tier=subscriber.subscription_tier,
            subscription_end=_iso(subscriber.subscription_end),
            trial_active=trial_active,
            trial_end=_iso(trial_end),
        )

    customers = await stripe.list_customers(email, limit=1)
    if not customers:
        log_step("No Stripe customer found")
        await repo.upsert(SubscriberRecord(
            email=email,
            user_id=user.id,
            stripe_customer_id=None,
            subscribed=False,
            subscription_tier="free",
            subscription_end=None,
            trial_active=trial_active,
        ))
        return SubscriptionInfo(
            subscribed=False,
            subscription_tier="free",
            trial_active=trial_active,
            trial_end=_iso(trial_end),
        )

    customer_id = customers[0]["id"]
    log_step("Found Stripe customer", {"customerId": customer_id})

    subscriptions = await stripe.list_subscriptions(customer_id, status="active", limit=1)
    active = bool(subscriptions)
    subscription_end = None
    if active:
        subscription_end = datetime.fromtimestamp(subscriptions[0]["current_period_end"], tz=timezone.utc)
        log_step("Active subscription found", {
            "subscriptionId": subscriptions[0].get("id"),
            "endDate": _iso(subscription_end),
        })

    tier = "pro" if active else "free"
    await repo.upsert(SubscriberRecord(
        email=email,
        user_id=user.id,
        stripe_customer_id=customer_id,
        subscribed=active,
        subscription_tier=tier,
        subscription_end=subscription_end,
        # A paid plan ends the trial.
        trial_active=False if active else trial_active,
    ))

    info = SubscriptionInfo(
        subscribed=active,
        subscription_tier=tier,
        subscription_end=_iso(subscription_end),
        trial_active=trial_active,
        trial_end=_iso(trial_end),
    )
    log_step("Updated subscription status", {
        "subscribed": active,
        "trialActive": trial_active,
        "hasAccess": info.has_access,
    })
    return info
