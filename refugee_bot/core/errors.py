"""Fehler-Taxonomie des Bots.

Nur AuthenticationFailure und (Payload-)ValidationFailure erreichen die
HTTP-Schicht. UpstreamFailure und InternalFailure werden innerhalb der
Pipeline abgefangen und in eine generische Antwort umgewandelt.
"""
from typing import Optional


class BotError(Exception):
    """Basisklasse aller fachlichen Fehler."""

    code = "BOT_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class AuthenticationFailure(BotError):
    """Signatur fehlt oder stimmt nicht (Anfrage nicht vom Gateway)."""

    code = "INVALID_SIGNATURE"


class ValidationFailure(BotError):
    code = "VALIDATION_ERROR"


class UpstreamFailure(BotError):
    """Fehler eines Fremdsystems (Dialogflow, Datenbank)."""

    code = "UPSTREAM_ERROR"

    def __init__(self, service: str, message: str):
        super().__init__(f"{service} error: {message}")
        self.service = service


class InternalFailure(BotError):
    code = "INTERNAL_ERROR"
