"""Prüft, ob ein Webhook-Aufruf wirklich vom Twilio-Gateway stammt.

Twilio signiert die exakt aufgerufene URL plus alle POST-Parameter
(nach Schlüssel sortiert, Schlüssel und Wert direkt hintereinander) per
HMAC-SHA1 mit dem Auth-Token und schickt das Ergebnis base64-kodiert im
Header ``X-Twilio-Signature``.
"""
import base64
import hashlib
import hmac
import logging
from typing import Mapping, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-twilio-signature"


def build_request_url(url: str, headers: Mapping[str, str], base_url: str = "") -> str:
    """Rekonstruiert die URL, die Twilio aufgerufen hat.

    Ist BASE_URL konfiguriert, bestimmt sie Schema, Host und ggf. einen
    Pfad-Präfix. Sonst gelten hinter einem Proxy (Render, nginx, ngrok)
    X-Forwarded-Proto/-Host, da die App intern http und einen anderen Host sieht.
    """
    parts = urlsplit(url)
    if base_url:
        base = urlsplit(base_url)
        proto, host = base.scheme, base.netloc
        path = base.path.rstrip("/") + parts.path
    else:
        proto = headers.get("x-forwarded-proto") or parts.scheme
        host = headers.get("x-forwarded-host") or parts.netloc
        # Bei mehreren Proxies gilt der erste Eintrag.
        proto = proto.split(",")[0].strip()
        host = host.split(",")[0].strip()
        path = parts.path
    rebuilt = f"{proto}://{host}{path}"
    if parts.query:
        rebuilt = f"{rebuilt}?{parts.query}"
    return rebuilt


def compute_signature(url: str, params: Mapping[str, str], secret: str) -> str:
    to_sign = url
    for key in sorted(params.keys()):
        to_sign += f"{key}{params[key]}"
    digest = hmac.new(secret.encode("utf-8"), to_sign.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(
    full_url: str,
    body_params: Mapping[str, str],
    signature_header: Optional[str],
    shared_secret: str,
) -> bool:
    """Gibt True zurück, wenn die Signatur passt; wirft nie."""
    if not signature_header:
        logger.warning("Missing Twilio signature header")
        return False
    if not shared_secret:
        logger.error("Twilio auth token not configured, cannot verify signature")
        return False

    try:
        parts = urlsplit(full_url)
    except ValueError:
        logger.warning(f"Malformed request URL for signature check: {full_url!r}")
        return False
    if parts.scheme not in ("http", "https") or not parts.netloc:
        logger.warning(f"Malformed request URL for signature check: {full_url!r}")
        return False

    expected = compute_signature(full_url, body_params, shared_secret)
    valid = hmac.compare_digest(expected.encode("utf-8"), signature_header.strip().encode("utf-8"))
    if not valid:
        logger.warning(f"Invalid Twilio webhook signature for {full_url} (params: {sorted(body_params)})")
    return valid


class SignatureVerifier:
    """Bindet Secret und Umgebungs-Flag an die Signaturprüfung.

    Außerhalb der Produktion wird die Prüfung übersprungen, damit lokale
    Tests ohne echtes Gateway möglich sind. Jede Umgehung wird geloggt.
    """

    def __init__(self, shared_secret: str, enforce: bool = True):
        self.shared_secret = shared_secret
        self.enforce = enforce

    def verify(self, full_url: str, body_params: Mapping[str, str], signature_header: Optional[str]) -> bool:
        if not self.enforce:
            logger.warning(
                f"Twilio signature verification BYPASSED (non-production mode) for {full_url}"
            )
            return True
        return verify_signature(full_url, body_params, signature_header, self.shared_secret)
