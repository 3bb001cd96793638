"""The four backend functions, one POST route each under ``/functions``.

Every failure, malformed bodies included, comes back as HTTP 500 with
``{"error": message}``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_services
from api.metrics import FUNCTION_CALLS_TOTAL
from api.state import Services
from billing.portal import create_portal_session
from billing.subscription import check_subscription
from integration.calendar_event import build_event
from integration.support_email import send_support_email
from integration.supabase_auth import bearer_token
from zenith_tasks.models import CalendarEventRequest, SupportEmailRequest
from zenith_tasks.steps import StepLogger

router = APIRouter(prefix="/functions")
logger = logging.getLogger(__name__)


def _failure(name: str, e: Exception, **extra) -> JSONResponse:
    StepLogger(name)("ERROR", {"message": str(e)})
    FUNCTION_CALLS_TOTAL.labels(function=name, status="error").inc()
    return JSONResponse(status_code=500, content={"error": str(e), **extra})


def _success(name: str, body: dict) -> JSONResponse:
    FUNCTION_CALLS_TOTAL.labels(function=name, status="ok").inc()
    return JSONResponse(content=body)


@router.post("/add-to-calendar")
async def add_to_calendar(request: Request) -> JSONResponse:
    try:
        payload = CalendarEventRequest.model_validate(await request.json())
        event = build_event(payload)
    except Exception as e:
        logger.error(f"Error in add-to-calendar function: {e}")
        return _failure("add-to-calendar", e, success=False)
    return _success("add-to-calendar", event.model_dump(by_alias=True))


@router.post("/check-subscription")
async def check_subscription_route(
    authorization: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> JSONResponse:
    log_step = StepLogger("check-subscription")
    try:
        log_step("Function started")
        user = await services.auth.get_user(bearer_token(authorization))
        log_step("User authenticated", {"userId": user.id, "email": user.email})
        info = await check_subscription(
            user,
            services.subscribers,
            services.stripe,
            trial_days=services.settings.trial_days,
        )
    except Exception as e:
        return _failure("check-subscription", e)
    return _success("check-subscription", info.model_dump())


@router.post("/customer-portal")
async def customer_portal(
    authorization: Optional[str] = Header(default=None),
    origin: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> JSONResponse:
    log_step = StepLogger("customer-portal")
    try:
        log_step("Function started")
        user = await services.auth.get_user(bearer_token(authorization))
        log_step("User authenticated", {"userId": user.id, "email": user.email})
        url = await create_portal_session(
            user,
            services.subscribers,
            services.stripe,
            origin=origin or services.settings.app_origin,
        )
    except Exception as e:
        return _failure("customer-portal", e)
    return _success("customer-portal", {"url": url})


@router.post("/send-support-email")
async def support_email(request: Request, services: Services = Depends(get_services)) -> JSONResponse:
    try:
        StepLogger("send-support-email")("Function started")
        payload = SupportEmailRequest.model_validate(await request.json())
        result = await send_support_email(payload, services.resend, services.settings)
    except Exception as e:
        return _failure("send-support-email", e)
    return _success("send-support-email", result)
