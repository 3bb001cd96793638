import json

import httpx
import pytest
from fastapi.testclient import TestClient

from api.main import app
from storage.subscriber_store import SubscriberRecord


def backend_handler(sent_emails=None, customers=()):
    def handler(request: httpx.Request) -> httpx.Response:
        host, path = request.url.host, request.url.path
        if host == "supabase.test" and path == "/auth/v1/user":
            if request.headers.get("authorization") == "Bearer good-token":
                return httpx.Response(200, json={"id": "user-1", "email": "ana@example.com"})
            return httpx.Response(401, json={"msg": "invalid JWT"})
        if host == "stripe.test":
            if path == "/v1/customers":
                return httpx.Response(200, json={"data": list(customers)})
            if path == "/v1/billing_portal/sessions":
                return httpx.Response(200, json={"id": "bps_1", "url": "https://billing.test/session"})
        if host == "resend.test" and path == "/emails":
            body = json.loads(request.content)
            if sent_emails is not None:
                sent_emails.append(body)
            return httpx.Response(200, json={"id": f"email_{len(sent_emails or [])}"})
        return httpx.Response(404, json={})

    return handler


@pytest.fixture
def client(install_services):
    install_services(handler=backend_handler())
    return TestClient(app)


AUTH = {"Authorization": "Bearer good-token"}


def test_cors_preflight(client):
    r = client.options(
        "/functions/check-subscription",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
    allowed = r.headers["access-control-allow-headers"].lower()
    assert "authorization" in allowed and "x-client-info" in allowed and "apikey" in allowed


def test_add_to_calendar(client):
    r = client.post("/functions/add-to-calendar", json={
        "taskId": "t1",
        "title": "Write report",
        "dueDate": "2026-03-01",
        "dueTime": "10:00",
        "estimatedTime": "45 minutes",
    })
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Calendar event created successfully"
    assert "DTSTART:20260301T100000Z" in body["icalContent"]
    assert "DTEND:20260301T104500Z" in body["icalContent"]
    assert body["googleCalendarUrl"].startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")


@pytest.mark.parametrize("payload", [{"title": "no date"}, {"taskId": "1", "title": "x", "dueDate": "yesterday"}])
def test_add_to_calendar_errors_are_500(client, payload):
    r = client.post("/functions/add-to-calendar", json=payload)
    assert r.status_code == 500
    assert r.json()["success"] is False
    assert r.json()["error"]


def test_add_to_calendar_invalid_json_is_500(client):
    r = client.post("/functions/add-to-calendar", content="{oops", headers={"content-type": "application/json"})
    assert r.status_code == 500
    assert "error" in r.json()


def test_check_subscription_requires_auth_header(client):
    r = client.post("/functions/check-subscription")
    assert r.status_code == 500
    assert r.json() == {"error": "No authorization header provided"}


def test_check_subscription_bad_token(client):
    r = client.post("/functions/check-subscription", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 500
    assert r.json()["error"] == "Authentication error: invalid JWT"


def test_check_subscription_trial_is_idempotent(client):
    first = client.post("/functions/check-subscription", headers=AUTH).json()
    second = client.post("/functions/check-subscription", headers=AUTH).json()
    assert first["trial_active"] is True and second["trial_active"] is True
    assert first["trial_end"] == second["trial_end"]
    assert first["has_access"] is True
    assert first["subscribed"] is False


def test_customer_portal_manual_customer_rejected(install_services):
    services = install_services(handler=backend_handler())
    services.subscribers.rows["user-1"] = SubscriberRecord(
        user_id="user-1", email="ana@example.com", stripe_customer_id="manual_test_customer"
    )
    r = TestClient(app).post("/functions/customer-portal", headers=AUTH)
    assert r.status_code == 500
    assert "set up for testing only" in r.json()["error"]


def test_customer_portal_returns_url(install_services):
    install_services(handler=backend_handler(customers=[{"id": "cus_1"}]))
    r = TestClient(app).post("/functions/customer-portal", headers={**AUTH, "Origin": "https://app.example.com"})
    assert r.status_code == 200
    assert r.json() == {"url": "https://billing.test/session"}


def test_send_support_email(install_services):
    sent = []
    install_services(handler=backend_handler(sent_emails=sent))
    r = TestClient(app).post("/functions/send-support-email", json={
        "name": "Ana",
        "email": "ana@example.com",
        "subject": "Login",
        "message": "Cannot log in\nHelp <please>",
    })
    assert r.status_code == 200
    assert r.json() == {"success": True, "supportEmailId": "email_1", "confirmationEmailId": "email_2"}

    support, confirmation = sent
    assert support["subject"] == "Support Request: Login"
    assert support["to"] == ["support@aitaskmanagerpro.com"]
    assert "Cannot log in<br>Help &lt;please&gt;" in support["html"]
    assert confirmation["from"] == "noreply@aitaskmanagerpro.com"
    assert confirmation["to"] == ["ana@example.com"]
    assert confirmation["subject"] == "We received your message!"


def test_send_support_email_validation_is_500(client):
    r = client.post("/functions/send-support-email", json={"name": "Ana"})
    assert r.status_code == 500
    assert "error" in r.json()
