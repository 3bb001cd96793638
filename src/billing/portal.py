from __future__ import annotations

import logging
from typing import Optional

from integration.stripe_client import StripeClient, StripeError
from integration.supabase_auth import AuthUser
from storage.subscriber_store import SubscriberRepo
from zenith_tasks.steps import FunctionError, StepLogger

logger = logging.getLogger(__name__)

log_step = StepLogger("customer-portal")

DEFAULT_ORIGIN = "http://localhost:3000"


def is_manual_customer_id(customer_id: str) -> bool:
    return customer_id == "manual_test_customer" or customer_id.startswith("manual_")


async def resolve_customer_id(user: AuthUser, repo: SubscriberRepo, stripe: StripeClient) -> str:
    """Stripe customer for ``user``: by email first, then the id stored on the subscriber row."""
    email = user.email or ""
    customers = await stripe.list_customers(email, limit=1)
    log_step("Searched for customer by email", {"email": email, "found": len(customers)})
    if customers:
        return customers[0]["id"]

    record = await repo.get_by_email(email)
    stored_id = record.stripe_customer_id if record else None
    log_step("Checked subscribers table", {"stripeCustomerId": stored_id})
    if not stored_id:
        raise FunctionError(
            f"No Stripe customer found for email {email}. "
            "Please contact support to resolve this subscription issue."
        )

    if is_manual_customer_id(stored_id):
        raise FunctionError(
            "Your subscription is set up for testing only. Please contact support "
            f"to activate a real Stripe customer portal. Email: {email}"
        )

    try:
        customer = await stripe.retrieve_customer(stored_id)
    except StripeError as e:
        log_step("Failed to retrieve customer by ID", {"error": str(e)})
        raise FunctionError(
            f"Stripe customer {stored_id} not found. "
            "Please contact support to resolve this subscription issue."
        ) from e
    log_step("Found customer by ID from database", {"customerId": stored_id})
    return customer.get("id", stored_id)


async def create_portal_session(
    user: AuthUser,
    repo: SubscriberRepo,
    stripe: StripeClient,
    origin: Optional[str] = None,
) -> str:
    customer_id = await resolve_customer_id(user, repo, stripe)
    log_step("Found Stripe customer", {"customerId": customer_id})

    session = await stripe.create_portal_session(customer_id, return_url=f"{origin or DEFAULT_ORIGIN}/app")
    log_step("Customer portal session created", {"sessionId": session.get("id")})
    return session["url"]
