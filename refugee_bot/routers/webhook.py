"""Webhook-Router: nimmt WhatsApp-Nachrichten vom Twilio-Gateway entgegen
und antwortet mit TwiML."""
import datetime
import logging
import re
from typing import Dict

from fastapi import APIRouter, Request, Response
from twilio.twiml.messaging_response import MessagingResponse

from refugee_bot.core.errors import AuthenticationFailure, ValidationFailure
from refugee_bot.core.identity import mask_phone_number
from refugee_bot.core.models import MAX_REPLY_LENGTH, BotResponse, InboundMessage
from refugee_bot.core.signature import SIGNATURE_HEADER, build_request_url

router = APIRouter(prefix="/webhook", tags=["Webhook"])
logger = logging.getLogger(__name__)

SENDER_PATTERN = re.compile(r"^whatsapp:\+\d{1,15}$")
SERVICE_NAME = "Refugee WhatsApp Bot Backend"
VERSION = "1.0.0"


def parse_inbound(params: Dict[str, str]) -> InboundMessage:
    """Extrahiert Absender, Text und MessageSid aus dem Twilio-Payload."""
    sender = params.get("From")
    if not sender:
        raise ValidationFailure("Missing required field: From")
    if "Body" not in params:
        raise ValidationFailure("Missing required field: Body")
    if not SENDER_PATTERN.match(sender):
        raise ValidationFailure("Invalid phone number format. Expected format: whatsapp:+1234567890")
    return InboundMessage(sender_id=sender, text=params["Body"], message_id=params.get("MessageSid"))


def format_reply_text(bot_response: BotResponse) -> str:
    # WhatsApp-Textnachrichten haben keine nativen Buttons; Quick Replies
    # werden als Liste unter die Antwort gehängt.
    text = bot_response.message
    if bot_response.quick_replies:
        footer = "\n\nYou can reply with:\n" + "\n".join(f"• {label}" for label in bot_response.quick_replies)
        if len(text) + len(footer) <= MAX_REPLY_LENGTH:
            text += footer
    return text


def render_twiml(bot_response: BotResponse) -> str:
    twiml = MessagingResponse()
    twiml.message(format_reply_text(bot_response))
    return str(twiml)


@router.post("/twilio/whatsapp")
async def whatsapp_webhook(request: Request):
    """Haupt-Endpunkt für eingehende WhatsApp-Nachrichten.

    Ablauf:
    1) Signaturprüfung (X-Twilio-Signature), außerhalb der Produktion übersprungen.
    2) Payload-Prüfung (From/Body).
    3) Verarbeitung durch die Pipeline.
    4) Antwort als TwiML.
    """
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}

    url = build_request_url(str(request.url), request.headers, request.app.state.settings.base_url)
    verifier = request.app.state.verifier
    if not verifier.verify(url, params, request.headers.get(SIGNATURE_HEADER)):
        logger.warning(f"Rejected webhook with invalid signature from {request.client.host if request.client else '?'}")
        raise AuthenticationFailure("Forbidden: Invalid signature")

    message = parse_inbound(params)
    masked = mask_phone_number(message.sender_id)
    logger.info(f"Received WhatsApp webhook from {masked} (sid={message.message_id})")

    bot_response = await request.app.state.pipeline.process(message)
    if bot_response.quick_replies:
        logger.debug(f"Quick replies for {masked}: {bot_response.quick_replies}")

    logger.info(f"Webhook response sent to {masked} (length={len(bot_response.message)})")
    return Response(content=render_twiml(bot_response), media_type="text/xml")


@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    database_ok = await request.app.state.gateway.ping()
    return {
        "status": "OK" if database_ok else "DEGRADED",
        "service": SERVICE_NAME,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "environment": settings.environment,
        "version": VERSION,
        "twilio": "Configured" if settings.twilio_auth_token else "Not Configured",
        "dialogflow": "Enabled" if request.app.state.resolver.remote_enabled else "Disabled",
        "database": "Connected" if database_ok else "Unavailable",
    }
