"""Baut aus einem aufgelösten Intent und den Referenzdaten die Antwort an
den Nutzer (Text + Quick Replies).

Unabhängige Abfragen eines Intents laufen parallel (asyncio.gather). Schlägt
eine davon fehl, wird nichts Teilweises gerendert, sondern die generische
Entschuldigung zurückgegeben.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, List

from refugee_bot.core.errors import InternalFailure
from refugee_bot.core.models import (
    BotResponse,
    ContactRecord,
    Intent,
    RegistrationStepRecord,
    RequiredDocumentRecord,
    ServiceRecord,
)
from refugee_bot.core.reference_data import ReferenceDataGateway
from refugee_bot.core.resolver import Resolution

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hello! I'm here to provide information for refugees and displaced people in Mbarara. "
    "I can help you find information about registration, food, shelter, healthcare, and "
    "emergency contacts. What do you need help with today?"
)
FALLBACK_MESSAGE = (
    "I'm here to help with registration, food, shelter, healthcare, and emergency contacts "
    "for refugees in Mbarara. What specific information do you need?"
)
NLU_EMPTY_MESSAGE = "I apologize, but I could not process your request."
ERROR_MESSAGE = (
    "Sorry, I encountered an error while processing your request. "
    "Please try again or contact support if the issue persists."
)
FOOD_GUIDANCE_MESSAGE = (
    "Food assistance is primarily provided by the World Food Programme (WFP) to registered "
    "refugees in settlements. Please ensure you are registered with OPM to access these services."
)
SHELTER_GUIDANCE_MESSAGE = (
    "Shelter assistance is arranged through the official registration process with OPM. "
    "You need to report to the OPM Refugee Desk to be assigned a place in a settlement. "
    "Would you like their contact information?"
)

QUICK_REPLIES: Dict[Intent, List[str]] = {
    Intent.REGISTRATION: ["Contact Details", "Required Documents", "Registration Steps"],
    Intent.FOOD: ["Settlement Info", "WFP Contacts", "Distribution Points"],
    Intent.SHELTER: ["OPM Contact", "Registration Steps", "Main Menu"],
    Intent.HEALTHCARE: ["Emergency Number", "Hospital Info", "Settlement Clinics"],
    Intent.EMERGENCY_CONTACTS: ["More Contacts", "Registration Help", "Healthcare Info"],
    Intent.WELCOME: ["Registration", "Food", "Shelter", "Healthcare", "Emergency Contacts"],
    Intent.FALLBACK: ["More Info", "Contact Support", "Main Menu"],
}


def _service_line(service: ServiceRecord) -> str:
    line = f"• {service.organization}: {service.services}"
    if service.location:
        line += f" ({service.location})"
    return line


def _contact_line(contact: ContactRecord) -> str:
    reach = contact.phone or contact.email or "no contact details"
    line = f"• {contact.entity}: {reach}"
    if contact.description:
        line += f" ({contact.description})"
    return line


def _is_urgent(contact: ContactRecord) -> bool:
    return contact.is_urgent or contact.type == "Emergency"


def format_registration(
    steps: List[RegistrationStepRecord],
    documents: List[RequiredDocumentRecord],
    contacts: List[ContactRecord],
) -> str:
    step_lines = "\n".join(
        f"{step.step_number}. {step.title}: {step.description}"
        for step in sorted(steps, key=lambda s: s.step_number)
    )
    document_lines = "\n".join(
        f"• {doc.document_name}{' (Essential)' if doc.is_essential else ''}" for doc in documents
    )
    message = (
        "I can help with refugee registration. Here's the process:\n\n"
        f"{step_lines}\n\nRequired Documents:\n{document_lines}"
    )
    if contacts:
        message += "\n\nWhere to ask:\n" + "\n".join(_contact_line(c) for c in contacts)
    return message + "\n\nWould you like more details about any specific step?"


def format_food(services: List[ServiceRecord]) -> str:
    if not services:
        return FOOD_GUIDANCE_MESSAGE
    service_info = "\n".join(_service_line(s) for s in services)
    return (
        f"Food assistance options:\n\n{service_info}\n\n"
        "Note: Most food aid requires official registration and is distributed through settlements."
    )


def format_shelter(services: List[ServiceRecord]) -> str:
    if not services:
        return SHELTER_GUIDANCE_MESSAGE
    service_info = "\n".join(_service_line(s) for s in services)
    return (
        f"Shelter assistance options:\n\n{service_info}\n\n"
        "Note: Most shelter assistance requires official registration with OPM."
    )


def format_healthcare(services: List[ServiceRecord], contacts: List[ContactRecord]) -> str:
    message = "Healthcare services available:\n\n"
    if services:
        message += "\n".join(
            f"• {s.organization}: {s.services}{f' - {s.contact_phone}' if s.contact_phone else ''}"
            for s in services
        )
    else:
        message += "Please visit the nearest settlement health centre or ask the OPM Refugee Desk for a referral."

    if contacts:
        message += "\n\nEmergency Contacts:\n" + "\n".join(_contact_line(c) for c in contacts)
    return message


def format_emergency_contacts(contacts: List[ContactRecord]) -> str:
    # Stabile Sortierung: innerhalb der Blöcke bleibt die Reihenfolge der Quelle erhalten.
    urgent = sorted((c for c in contacts if _is_urgent(c)), key=lambda c: not c.is_urgent)
    general = [c for c in contacts if not _is_urgent(c)]

    message = "🚨 *Emergency & Important Contacts*"
    if urgent:
        message += "\n\n*URGENT CONTACTS:*\n" + "\n".join(_contact_line(c) for c in urgent)
    if general:
        message += "\n\n*OTHER IMPORTANT CONTACTS:*\n" + "\n".join(_contact_line(c) for c in general)
    if not contacts:
        message += "\n\nNo contacts are listed at the moment. Please visit the OPM Refugee Desk in Mbarara."
    return message


class ResponseComposer:
    """Erzeugt pro Intent die Antwort; Datenfehler werden zur Entschuldigung."""

    def __init__(self, gateway: ReferenceDataGateway):
        self.gateway = gateway
        self._handlers: Dict[Intent, Callable[[], Awaitable[str]]] = {
            Intent.REGISTRATION: self._registration,
            Intent.FOOD: self._food,
            Intent.SHELTER: self._shelter,
            Intent.HEALTHCARE: self._healthcare,
            Intent.EMERGENCY_CONTACTS: self._emergency_contacts,
        }

    async def compose_resolution(self, resolution: Resolution) -> BotResponse:
        if resolution.is_passthrough:
            return BotResponse(
                message=resolution.fulfillment_text or NLU_EMPTY_MESSAGE,
                metadata={"intent": resolution.nlu_intent_name, "source": resolution.source},
            )
        response = await self.compose(resolution.intent)
        response.metadata["source"] = resolution.source
        return response

    async def compose(self, intent: Intent) -> BotResponse:
        if intent == Intent.WELCOME:
            return self._reply(intent, WELCOME_MESSAGE)
        if intent == Intent.FALLBACK:
            return self._reply(intent, FALLBACK_MESSAGE)

        handler = self._handlers.get(intent)
        if handler is None:
            raise InternalFailure(f"No response handler for intent '{intent.value}'")

        try:
            message = await handler()
        except Exception as e:
            logger.error(f"Composing response for intent '{intent.value}' failed: {e}", exc_info=True)
            return BotResponse(message=ERROR_MESSAGE, metadata={"intent": intent.value, "degraded": True})
        return self._reply(intent, message)

    def _reply(self, intent: Intent, message: str) -> BotResponse:
        return BotResponse(
            message=message,
            quick_replies=list(QUICK_REPLIES[intent]),
            metadata={"intent": intent.value},
        )

    async def _registration(self) -> str:
        steps, documents, contacts = await asyncio.gather(
            self.gateway.registration_steps(),
            self.gateway.required_documents(),
            self.gateway.contacts_by_type("General"),
        )
        return format_registration(steps, documents, contacts)

    async def _food(self) -> str:
        return format_food(await self.gateway.services_by_category("Food"))

    async def _shelter(self) -> str:
        return format_shelter(await self.gateway.services_by_category("Shelter"))

    async def _healthcare(self) -> str:
        services, emergency, hospitals = await asyncio.gather(
            self.gateway.services_by_category("Health"),
            self.gateway.contacts_by_type("Emergency"),
            self.gateway.contacts_by_type("Hospital"),
        )
        return format_healthcare(services, emergency + hospitals)

    async def _emergency_contacts(self) -> str:
        return format_emergency_contacts(await self.gateway.all_contacts())
