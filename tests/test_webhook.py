from unittest.mock import AsyncMock, patch

import pytest

from refugee_bot.core.errors import ValidationFailure
from refugee_bot.core.models import BotResponse
from refugee_bot.core.signature import SignatureVerifier, compute_signature
from refugee_bot.routers.webhook import format_reply_text, parse_inbound

WEBHOOK = "/webhook/twilio/whatsapp"
SENDER = "whatsapp:+256700000001"


def post(client, body, **headers):
    data = {"From": SENDER, "Body": body, "MessageSid": "SM123"}
    return client.post(WEBHOOK, data=data, headers=headers)


def test_food_question_is_answered_with_twiml(client):
    response = post(client, "Where can I get food?")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    assert "<Response><Message>" in response.text
    assert "World Food Programme (WFP)" in response.text
    assert "You can reply with:" in response.text


def test_empty_body_gets_instructions(client):
    response = post(client, "")
    assert response.status_code == 200
    assert "Please send a message with your question." in response.text


def test_missing_sender_is_rejected(client):
    response = client.post(WEBHOOK, data={"Body": "hello"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_invalid_sender_format_is_rejected(client):
    response = client.post(WEBHOOK, data={"From": "+256700000001", "Body": "hello"})
    assert response.status_code == 400


def test_signature_enforced_in_production_mode(client):
    client.app.state.verifier = SignatureVerifier("secret-token", enforce=True)
    data = {"From": SENDER, "Body": "hello", "MessageSid": "SM123"}

    rejected = client.post(WEBHOOK, data=data)
    assert rejected.status_code == 403
    assert rejected.json()["error"]["code"] == "INVALID_SIGNATURE"

    wrong = client.post(WEBHOOK, data=data, headers={"X-Twilio-Signature": "bm9wZQ=="})
    assert wrong.status_code == 403

    url = "http://testserver" + WEBHOOK
    signature = compute_signature(url, data, "secret-token")
    accepted = client.post(WEBHOOK, data=data, headers={"X-Twilio-Signature": signature})
    assert accepted.status_code == 200


def test_signature_uses_forwarded_url(client):
    client.app.state.verifier = SignatureVerifier("secret-token", enforce=True)
    data = {"From": SENDER, "Body": "hello", "MessageSid": "SM123"}
    signature = compute_signature("https://bot.example.org" + WEBHOOK, data, "secret-token")

    response = client.post(
        WEBHOOK,
        data=data,
        headers={
            "X-Twilio-Signature": signature,
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "bot.example.org",
        },
    )
    assert response.status_code == 200


def test_signature_uses_configured_base_url(client, monkeypatch):
    # Proxy ohne X-Forwarded-Header: nur BASE_URL kennt die öffentliche Adresse
    monkeypatch.setattr(client.app.state.settings, "base_url", "https://bot.example.org")
    client.app.state.verifier = SignatureVerifier("secret-token", enforce=True)
    data = {"From": SENDER, "Body": "hello", "MessageSid": "SM123"}
    signature = compute_signature("https://bot.example.org" + WEBHOOK, data, "secret-token")

    response = client.post(WEBHOOK, data=data, headers={"X-Twilio-Signature": signature})
    assert response.status_code == 200

    internal = compute_signature("http://testserver" + WEBHOOK, data, "secret-token")
    rejected = client.post(WEBHOOK, data=data, headers={"X-Twilio-Signature": internal})
    assert rejected.status_code == 403


def test_health(client):
    response = client.get("/webhook/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["dialogflow"] == "Disabled"
    assert data["database"] == "Connected"
    assert client.get("/health").json()["status"] == "OK"


def test_health_reports_unavailable_database(client):
    with patch.object(client.app.state.gateway, "ping", AsyncMock(return_value=False)):
        data = client.get("/webhook/health").json()
    assert data["status"] == "DEGRADED"
    assert data["database"] == "Unavailable"


def test_root_lists_endpoints(client):
    assert client.get("/").json()["endpoints"]["webhook"] == WEBHOOK


def test_parse_inbound():
    message = parse_inbound({"From": SENDER, "Body": "hi", "MessageSid": "SM9"})
    assert message.sender_id == SENDER
    assert message.text == "hi"
    assert message.message_id == "SM9"

    with pytest.raises(ValidationFailure):
        parse_inbound({"From": SENDER})


def test_format_reply_text_drops_footer_when_too_long():
    long_reply = BotResponse(message="x" * 1590, quick_replies=["Main Menu"])
    assert format_reply_text(long_reply) == "x" * 1590

    short_reply = BotResponse(message="Hello", quick_replies=["Food", "Shelter"])
    assert format_reply_text(short_reply) == "Hello\n\nYou can reply with:\n• Food\n• Shelter"
