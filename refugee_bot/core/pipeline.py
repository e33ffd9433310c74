"""Verarbeitet eine eingehende Nachricht vollständig zu einer Bot-Antwort.

Pipeline:
1) Validierung (leer / zu lang) ohne Intent-Erkennung.
2) Session-Key aus der Absenderadresse ableiten.
3) Intent erkennen (Dialogflow, sonst Keywords).
4) Antwort aus den Referenzdaten bauen.

``process`` wirft nie; jeder unerwartete Fehler wird geloggt und als
generische Entschuldigung beantwortet.
"""
import logging
from typing import Optional

from refugee_bot.core.composer import ResponseComposer
from refugee_bot.core.identity import derive_session_key, mask_phone_number
from refugee_bot.core.models import BotResponse, InboundMessage
from refugee_bot.core.resolver import IntentResolver

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500

EMPTY_MESSAGE_REPLY = (
    "Please send a message with your question. I can help with registration, food, "
    "shelter, healthcare, and emergency contacts."
)
TOO_LONG_REPLY = (
    "Your message is too long. Please keep your questions brief and focused on one topic at a time."
)
PROCESSING_ERROR_REPLY = (
    "Sorry, I encountered an error while processing your message. Please try again in a moment."
)


def validate_text(text: Optional[str]) -> Optional[BotResponse]:
    """Liefert eine Hinweis-Antwort, wenn der Text nicht verarbeitet wird, sonst None."""
    if not text or not text.strip():
        return BotResponse(message=EMPTY_MESSAGE_REPLY, metadata={"validation": "empty"})
    if len(text) > MAX_MESSAGE_LENGTH:
        return BotResponse(message=TOO_LONG_REPLY, metadata={"validation": "too_long"})
    return None


class MessagePipeline:
    """Orchestriert Validierung, Session-Key, Intent-Erkennung und Antwort."""

    def __init__(self, resolver: IntentResolver, composer: ResponseComposer):
        self.resolver = resolver
        self.composer = composer

    async def process(self, message: InboundMessage) -> BotResponse:
        masked = mask_phone_number(message.sender_id)
        try:
            logger.info(f"Processing user message from {masked} (length={len(message.text or '')})")

            rejection = validate_text(message.text)
            if rejection is not None:
                logger.info(f"Message from {masked} rejected: {rejection.metadata['validation']}")
                return rejection

            session_key = derive_session_key(message.sender_id)
            resolution = await self.resolver.resolve(message.text, session_key)
            response = await self.composer.compose_resolution(resolution)

            logger.info(
                f"Message processed successfully for {masked}: intent={response.metadata.get('intent')} "
                f"source={resolution.source} response_length={len(response.message)}"
            )
            return response
        except Exception:
            logger.exception(
                f"Message processing failed for {masked} (message_id={message.message_id})"
            )
            return BotResponse(message=PROCESSING_ERROR_REPLY, metadata={"error": True})
