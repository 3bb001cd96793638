from __future__ import annotations

import html
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from integration.resend_client import ResendClient
from zenith_tasks.config import Settings, get_settings
from zenith_tasks.models import SupportEmailRequest
from zenith_tasks.steps import StepLogger

logger = logging.getLogger(__name__)

log_step = StepLogger("send-support-email")


def support_team_html(req: SupportEmailRequest) -> str:
    message = html.escape(req.message).replace("\n", "<br>")
    return (
        "<h2>New Support Request</h2>"
        f"<p><strong>From:</strong> {html.escape(req.name)} ({html.escape(req.email)})</p>"
        f"<p><strong>Subject:</strong> {html.escape(req.subject)}</p>"
        "<p><strong>Message:</strong></p>"
        f'<div style="background: #f5f5f5; padding: 15px; border-radius: 5px; margin: 10px 0;">{message}</div>'
        f"<p><strong>Submitted:</strong> {datetime.now(timezone.utc).isoformat()}</p>"
    )


def confirmation_html(req: SupportEmailRequest) -> str:
    return (
        "<h2>Thank you for contacting AI Task Manager Pro!</h2>"
        f"<p>Hi {html.escape(req.name)},</p>"
        f"<p>We have received your message regarding: <strong>{html.escape(req.subject)}</strong></p>"
        "<p>Our support team will get back to you within 24 hours.</p>"
        "<p>Best regards,<br>The AI Task Manager Pro Team</p>"
        "<hr>"
        '<p style="color: #666; font-size: 12px;">This is an automated confirmation email. '
        "Please do not reply to this email.</p>"
    )


async def send_support_email(
    req: SupportEmailRequest,
    resend: ResendClient,
    settings: Optional[Settings] = None,
) -> Dict[str, object]:
    settings = settings or get_settings()
    log_step("Processing support email", {"name": req.name, "email": req.email, "subject": req.subject})

    support_id = await resend.send_email(
        sender=settings.support_email_from,
        to=[settings.support_email_to],
        subject=f"Support Request: {req.subject}",
        html=support_team_html(req),
    )
    confirmation_id = await resend.send_email(
        sender=settings.noreply_email_from,
        to=[req.email],
        subject="We received your message!",
        html=confirmation_html(req),
    )

    log_step("Emails sent successfully", {"supportId": support_id, "confirmationId": confirmation_id})
    return {
        "success": True,
        "supportEmailId": support_id,
        "confirmationEmailId": confirmation_id,
    }
