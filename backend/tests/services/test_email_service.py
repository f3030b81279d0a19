from app.services import email_service as email_module
from app.services.email_service import EmailService


def test_without_api_key_messages_are_only_logged(caplog):
    svc = EmailService(None, "noreply@example.com")
    assert svc.enabled is False
    with caplog.at_level("INFO"):
        assert svc.send_invitation_email("a@example.com", "https://app/invite/t", "member", "Acme") is True
    assert "email.mock" in caplog.text


def test_sendgrid_failure_is_reported_not_raised(monkeypatch):
    class BrokenClient:
        def __init__(self, api_key):
            self.api_key = api_key

        def send(self, message):
            raise RuntimeError("sendgrid down")

    monkeypatch.setattr(email_module, "SendGridAPIClient", BrokenClient)
    svc = EmailService("SG.key", "noreply@example.com")
    assert svc.send_invitation_email("a@example.com", "https://app/invite/t", "admin", "Acme", "Jo") is False


def test_sends_through_sendgrid(monkeypatch):
    sent = []

    class Client:
        def __init__(self, api_key):
            self.api_key = api_key

        def send(self, message):
            sent.append(message)
            return type("Resp", (), {"status_code": 202})()

    monkeypatch.setattr(email_module, "SendGridAPIClient", Client)
    svc = EmailService("SG.key", "noreply@example.com", "Catalog Pilot")
    assert svc.send_invitation_email("a@example.com", "https://app/invite/t", "admin", "Acme", "Jo", 3) is True
    assert len(sent) == 1
    body = sent[0].get()
    assert body["subject"] == "You're invited to join Acme on Catalog Pilot"
