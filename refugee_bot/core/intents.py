"""Intent-Tabellen: lokale Keyword-Regeln und Dialogflow-Intents, deren
Antwort aus eigenen Daten statt aus dem Fulfillment-Text gebaut wird."""
from typing import Dict, Optional, Tuple

from refugee_bot.core.models import Intent

# Reihenfolge ist bindend: die erste passende Gruppe gewinnt
# ("food" + "emergency" -> FOOD).
KEYWORD_GROUPS: Tuple[Tuple[Intent, Tuple[str, ...]], ...] = (
    (Intent.REGISTRATION, ("register", "registration", "opm")),
    (Intent.FOOD, ("food", "hungry", "eat")),
    (Intent.SHELTER, ("shelter", "place to stay", "sleep")),
    (Intent.HEALTHCARE, ("health", "hospital", "doctor", "sick")),
    (Intent.EMERGENCY_CONTACTS, ("emergency", "help", "contact")),
    (Intent.WELCOME, ("hello", "hi", "start")),
)

# Dialogflow-Intent-Namen (Display Names im Agenten).
OVERRIDE_INTENTS: Dict[str, Intent] = {
    "find_registration": Intent.REGISTRATION,
    "find_food": Intent.FOOD,
    "find_shelter": Intent.SHELTER,
    "find_healthcare": Intent.HEALTHCARE,
    "find_emergency_contacts": Intent.EMERGENCY_CONTACTS,
}

# Begrüßungs-Intents, deren Fulfillment-Text durchgereicht, aber als WELCOME
# verbucht wird ("Default Welcome Intent" ist der Standard-Intent jedes Agenten).
WELCOME_INTENT_NAMES = frozenset({"welcome", "Default Welcome Intent"})


def classify_local(text: str) -> Intent:
    """Ordnet einen Text per Teilstring-Suche einem Intent zu; nie eine Exception."""
    lowered = text.lower().strip()
    for intent, keywords in KEYWORD_GROUPS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return Intent.FALLBACK


def override_for(intent_name: Optional[str]) -> Optional[Intent]:
    if not intent_name:
        return None
    return OVERRIDE_INTENTS.get(intent_name)


def passthrough_intent_for(intent_name: Optional[str]) -> Intent:
    return Intent.WELCOME if intent_name in WELCOME_INTENT_NAMES else Intent.FALLBACK
