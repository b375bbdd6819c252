import hashlib
import hmac
import json

import httpx
import pytest

from form_builder_service import http
from form_builder_service.errors import IntegrationError
from form_builder_service.notifications import send_notifications, submission_data
from form_builder_service.notifications.chat import discord_payload, send_discord, send_slack, slack_payload
from form_builder_service.notifications.email import send_email, submission_email_html
from form_builder_service.notifications.webhook import send_webhook, sign

FORM = {
    "id": "f1",
    "title": "Signup",
    "fields": [{"id": "name", "label": "Name", "type": "short-answer"}, {"id": "cv", "label": "CV", "type": "file"}],
}
SUBMISSION = {
    "id": "s1",
    "createdAt": "2024-01-01T00:00:00Z",
    "answers": {"name": "Ada <b>"},
    "files": [{"fieldId": "cv", "originalName": "cv.pdf", "path": "/api/uploads/files/forms/f1/s1/1.pdf"}],
    "score": {"earnedPoints": 3, "totalPoints": 4, "percentage": 75},
}


@pytest.fixture
def data():
    return submission_data(FORM, SUBMISSION, base_url="http://forms.test")


@pytest.fixture
def outbox():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "x"})

    http.set_transport(httpx.MockTransport(handler))
    return requests


def test_submission_data(data):
    assert data["fields"][0] == {"label": "Name", "value": "Ada <b>", "type": "short-answer"}
    assert data["files"] == [
        {"fieldLabel": "CV", "filename": "cv.pdf", "downloadUrl": "http://forms.test/api/uploads/files/forms/f1/s1/1.pdf"}
    ]
    assert data["score"] == "3.0 / 4 (75.0%)"


def test_email_html_escapes_answers(data):
    page = submission_email_html({**data, "customMessage": "Thanks!"})
    assert "Ada &lt;b&gt;" in page
    assert "<p>Thanks!</p>" in page
    assert "3.0 / 4 (75.0%)" in page
    assert 'href="http://forms.test/api/uploads/files/forms/f1/s1/1.pdf"' in page


def test_disabled_config_sends_nothing(data, outbox):
    assert send_notifications(None, data) == []
    assert send_notifications({"enabled": False, "slack": {"enabled": True}}, data) == []
    assert outbox == []


def test_each_channel_reports_a_result(data, outbox, monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_key")
    config = {
        "enabled": True,
        "email": {"enabled": True, "recipients": ["owner@example.com"], "customMessage": "New lead"},
        "slack": {"enabled": True, "webhookUrl": "https://hooks.slack.com/services/T/B/X"},
        "discord": {"enabled": True, "webhookUrl": "https://example.com/not-discord"},
        "webhook": {"enabled": False, "url": "https://hooks.example.com"},
    }
    results = send_notifications(config, data)
    assert [r["type"] for r in results] == ["email", "slack", "discord"]
    assert results[0]["success"] is True
    assert results[1]["success"] is True
    assert results[2]["success"] is False
    assert "Invalid Discord webhook URL" in results[2]["error"]

    email = json.loads(outbox[0].content)
    assert email["to"] == ["owner@example.com"]
    assert "New lead" in email["html"]
    slack = json.loads(outbox[1].content)
    assert any("New lead" in b.get("text", {}).get("text", "") for b in slack["blocks"])


def test_legacy_recipients(data, outbox, monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_key")
    results = send_notifications({"enabled": True, "recipients": ["a@example.com"]}, data)
    assert results == [{"type": "email", "success": True}]


def test_email_without_api_key_fails_softly(data):
    results = send_notifications({"enabled": True, "email": {"enabled": True, "recipients": ["a@example.com"]}}, data)
    assert results == [{"type": "email", "success": False, "error": "RESEND_API_KEY is not configured"}]


def test_slack_rejects_foreign_urls(data):
    with pytest.raises(IntegrationError, match="Invalid Slack webhook URL"):
        send_slack({"enabled": True, "webhookUrl": "https://evil.example.com"}, data)


def test_chat_payloads(data):
    slack = slack_payload({"channel": "#forms"}, data)
    assert slack["channel"] == "#forms"
    assert slack["username"] == "Form Builder"
    assert "<http://forms.test/api/uploads/files/forms/f1/s1/1.pdf|cv.pdf>" in slack["blocks"][-2]["text"]["text"]

    discord = discord_payload({"avatarUrl": "https://img.test/a.png"}, data)
    embed = discord["embeds"][0]
    assert embed["title"] == "New Form Submission: Signup"
    assert embed["color"] == 0x3B82F6
    assert embed["fields"][-1]["name"] == "Attached Files"
    assert discord["avatar_url"] == "https://img.test/a.png"


def test_discord_error_status(data):
    http.set_transport(httpx.MockTransport(lambda request: httpx.Response(429, text="slow down")))
    with pytest.raises(IntegrationError, match="Discord webhook error: 429"):
        send_discord({"enabled": True, "webhookUrl": "https://discord.com/api/webhooks/1/abc"}, data)


def test_webhook_is_signed(data, outbox):
    config = {"enabled": True, "url": "https://hooks.example.com/in", "method": "put", "secret": "shh", "headers": {"X-Env": "test"}}
    send_webhook(config, data)
    [request] = outbox
    assert request.method == "PUT"
    assert request.headers["x-env"] == "test"
    expected = "sha256=" + hmac.new(b"shh", request.content, hashlib.sha256).hexdigest()
    assert request.headers["x-webhook-signature"] == expected
    assert sign(request.content, "shh") == expected
    payload = json.loads(request.content)
    assert payload["event"] == "form.submission"
    assert payload["form"] == {"id": "f1", "title": "Signup"}


def test_webhook_validation(data):
    with pytest.raises(IntegrationError, match="Invalid webhook URL"):
        send_webhook({"enabled": True, "url": "ftp://x"}, data)
    with pytest.raises(IntegrationError, match="Unsupported webhook method"):
        send_webhook({"enabled": True, "url": "https://x.test", "method": "DELETE"}, data)


def test_channels_without_destination_are_not_reported(data, outbox, monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_key")
    config = {
        "enabled": True,
        "email": {"enabled": True, "recipients": []},
        "slack": {"enabled": True, "webhookUrl": ""},
        "webhook": {"enabled": True, "url": "https://hooks.example.com/in"},
    }
    assert send_notifications(config, data) == [{"type": "webhook", "success": True}]
    assert [r.url.host for r in outbox] == ["hooks.example.com"]


def test_email_accepts_non_json_acknowledgement(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_key")
    http.set_transport(httpx.MockTransport(lambda request: httpx.Response(200, text="queued")))
    assert send_email("a@example.com", "Hi", "<p>Hi</p>") == {}
