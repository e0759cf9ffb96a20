"""Tests for the contact form, outbound email and health endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from docmarket.config import get_settings
from docmarket.database import get_db
from docmarket.services.mailer import get_mailer

CONTACT_BODY = {
    "name": "Ada",
    "email": "ada@example.com",
    "subject": "Quote request",
    "message": "<b>Please</b> send the full lease.",
}


@pytest.fixture(name="mail_configured")
def mail_configured_fixture(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "SENDGRID_API_KEY", "SG.test-key")
    monkeypatch.setattr(settings, "CONTACT_RECIPIENT", "inbox@example.com")
    return settings


def sent_message(sendgrid_cls) -> dict:
    """The request body SendGrid would have received."""
    return sendgrid_cls.return_value.send.call_args.args[0].get()


class TestContact:
    """Tests for POST /api/contact/send."""

    def test_send_success(self, client: TestClient, mail_configured):
        with patch("docmarket.services.mailer.SendGridAPIClient") as sendgrid_cls:
            response = client.post("/api/contact/send", json=CONTACT_BODY)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Message sent successfully"}

        sendgrid_cls.assert_called_once_with("SG.test-key")
        message = sent_message(sendgrid_cls)
        assert message["personalizations"][0]["to"][0]["email"] == "inbox@example.com"
        assert message["reply_to"]["email"] == "ada@example.com"
        assert message["subject"] == "Contact Form: Quote request"

    def test_message_body_is_escaped(self):
        html = get_mailer().render("email/contact.html", **CONTACT_BODY)
        assert "&lt;b&gt;Please&lt;/b&gt;" in html
        assert "<b>Please</b>" not in html

    def test_delivery_failure(self, client: TestClient, mail_configured):
        with patch("docmarket.services.mailer.SendGridAPIClient") as sendgrid_cls:
            sendgrid_cls.return_value.send.side_effect = OSError("unreachable")
            response = client.post("/api/contact/send", json=CONTACT_BODY)
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to send message. Please try again.", "error": "ServerError"}

    def test_unconfigured_mail_fails(self, client: TestClient):
        response = client.post("/api/contact/send", json=CONTACT_BODY)
        assert response.status_code == 500
        assert response.json()["error"] == "ServerError"

    def test_missing_field(self, client: TestClient):
        body = dict(CONTACT_BODY)
        del body["subject"]
        response = client.post("/api/contact/send", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"


class TestResetEmail:
    """Password reset links go out by email when SendGrid is configured."""

    def test_reset_email_sent(self, client: TestClient, test_user: dict, mail_configured):
        with patch("docmarket.services.mailer.SendGridAPIClient") as sendgrid_cls:
            response = client.post("/api/users/request-reset", json={"email": "test@example.com"})

        data = response.json()
        assert data["message"] == "Reset link sent to email"
        message = sent_message(sendgrid_cls)
        assert message["personalizations"][0]["to"][0]["email"] == "test@example.com"
        html = next(part["value"] for part in message["content"] if part["type"] == "text/html")
        assert data["token"] in html

    def test_reset_email_failure_still_issues_token(self, client: TestClient, test_user: dict, mail_configured):
        with patch("docmarket.services.mailer.SendGridAPIClient") as sendgrid_cls:
            sendgrid_cls.return_value.send.side_effect = OSError("unreachable")
            response = client.post("/api/users/request-reset", json={"email": "test@example.com"})
        assert response.status_code == 200
        assert response.json()["message"].startswith("Password reset requested")
        assert response.json()["token"]


class TestHealthAndErrors:
    """Liveness endpoints and error envelopes."""

    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_health(self, client: TestClient, path: str):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "ok"

    def test_health_reports_unreachable_database(self, client: TestClient, db_session: Session):
        from main import app

        def broken_db():
            with patch.object(db_session, "execute", side_effect=RuntimeError("gone")):
                yield db_session

        app.dependency_overrides[get_db] = broken_db
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"

    def test_unknown_route_is_json(self, client: TestClient):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found", "error": "NotFound"}

    def test_wrong_method_is_json(self, client: TestClient):
        response = client.patch("/api/services")
        assert response.status_code == 405
        assert response.json() == {"detail": "Method Not Allowed", "error": "MethodNotAllowed"}

    def test_security_headers(self, client: TestClient):
        response = client.get("/api/services")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

