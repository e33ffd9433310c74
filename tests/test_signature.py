import base64
import hashlib
import hmac
import logging

from refugee_bot.core.signature import (
    SignatureVerifier,
    build_request_url,
    compute_signature,
    verify_signature,
)

URL = "https://bot.example.org/webhook/twilio/whatsapp"
SECRET = "12345"
PARAMS = {
    "From": "whatsapp:+256700000001",
    "Body": "I need food",
    "MessageSid": "SM123",
}


def test_compute_signature_is_sorted_hmac_sha1():
    expected_payload = URL + "BodyI need foodFromwhatsapp:+256700000001MessageSidSM123"
    digest = hmac.new(SECRET.encode(), expected_payload.encode(), hashlib.sha1).digest()
    assert compute_signature(URL, PARAMS, SECRET) == base64.b64encode(digest).decode()


def test_parameter_order_does_not_matter():
    reordered = {key: PARAMS[key] for key in reversed(list(PARAMS))}
    assert compute_signature(URL, reordered, SECRET) == compute_signature(URL, PARAMS, SECRET)


def test_correct_secret_verifies():
    signature = compute_signature(URL, PARAMS, SECRET)
    assert verify_signature(URL, PARAMS, signature, SECRET) is True


def test_wrong_signature_is_rejected():
    signature = compute_signature(URL, PARAMS, "other-secret")
    assert verify_signature(URL, PARAMS, signature, SECRET) is False


def test_tampered_body_is_rejected():
    signature = compute_signature(URL, PARAMS, SECRET)
    tampered = dict(PARAMS, Body="I need shelter")
    assert verify_signature(URL, tampered, signature, SECRET) is False


def test_missing_header_or_secret_returns_false():
    signature = compute_signature(URL, PARAMS, SECRET)
    assert verify_signature(URL, PARAMS, None, SECRET) is False
    assert verify_signature(URL, PARAMS, "", SECRET) is False
    assert verify_signature(URL, PARAMS, signature, "") is False


def test_malformed_url_returns_false():
    signature = compute_signature("not a url", PARAMS, SECRET)
    assert verify_signature("not a url", PARAMS, signature, SECRET) is False
    assert verify_signature("http://[::1", PARAMS, signature, SECRET) is False


def test_build_request_url_uses_forwarded_headers():
    headers = {"x-forwarded-proto": "https", "x-forwarded-host": "bot.example.org"}
    rebuilt = build_request_url("http://10.0.0.5:8000/webhook/twilio/whatsapp?x=1", headers)
    assert rebuilt == "https://bot.example.org/webhook/twilio/whatsapp?x=1"


def test_build_request_url_without_proxy():
    assert build_request_url(URL, {}) == URL


def test_build_request_url_takes_first_forwarded_value():
    headers = {"x-forwarded-proto": "https, http", "x-forwarded-host": "bot.example.org, proxy.local"}
    rebuilt = build_request_url("http://internal/webhook/twilio/whatsapp", headers)
    assert rebuilt == "https://bot.example.org/webhook/twilio/whatsapp"


def test_build_request_url_prefers_base_url():
    headers = {"x-forwarded-proto": "http", "x-forwarded-host": "proxy.local"}
    rebuilt = build_request_url(
        "http://10.0.0.5:8000/webhook/twilio/whatsapp?x=1", headers, base_url="https://bot.example.org"
    )
    assert rebuilt == "https://bot.example.org/webhook/twilio/whatsapp?x=1"


def test_build_request_url_keeps_base_url_path_prefix():
    rebuilt = build_request_url(
        "http://10.0.0.5:8000/webhook/twilio/whatsapp", {}, base_url="https://example.org/refugee-bot/"
    )
    assert rebuilt == "https://example.org/refugee-bot/webhook/twilio/whatsapp"


def test_bypass_always_verifies_and_logs(caplog):
    verifier = SignatureVerifier(SECRET, enforce=False)
    with caplog.at_level(logging.WARNING):
        assert verifier.verify(URL, PARAMS, None) is True
        assert verifier.verify(URL, PARAMS, "garbage") is True
    assert caplog.text.count("signature verification BYPASSED") == 2


def test_enforcing_verifier_checks_signature():
    verifier = SignatureVerifier(SECRET, enforce=True)
    assert verifier.verify(URL, PARAMS, compute_signature(URL, PARAMS, SECRET)) is True
    assert verifier.verify(URL, PARAMS, "garbage") is False
