"""Zweistufige Intent-Erkennung.

Entscheidungstabelle:

=====================================  =========================================
Zustand                                Ergebnis
=====================================  =========================================
kein NLU-Client                        lokale Keyword-Regeln
NLU liefert Override-Intent            lokaler Intent, eigene Daten
NLU liefert anderen Intent             Fulfillment-Text von Dialogflow
NLU wirft                              lokale Keyword-Regeln (einmalig)
=====================================  =========================================
"""
import logging
from typing import Optional

from pydantic import BaseModel

from refugee_bot.core.intents import classify_local, override_for, passthrough_intent_for
from refugee_bot.core.models import Intent
from refugee_bot.core.nlu import DialogflowClient

logger = logging.getLogger(__name__)

SOURCE_DIALOGFLOW = "dialogflow"
SOURCE_KEYWORDS = "keywords"


class Resolution(BaseModel):
    """Ergebnis der Intent-Erkennung.

    ``fulfillment_text`` ist nur gesetzt, wenn Dialogflow einen Intent
    geliefert hat, dessen Antwort unverändert durchgereicht wird.
    """

    intent: Intent
    source: str
    nlu_intent_name: Optional[str] = None
    fulfillment_text: Optional[str] = None

    @property
    def is_passthrough(self) -> bool:
        return self.fulfillment_text is not None


class IntentResolver:
    """Nutzt Dialogflow, wenn ein Client übergeben wurde, sonst (oder bei
    einem Fehler) die lokalen Keyword-Regeln."""

    def __init__(self, nlu_client: Optional[DialogflowClient] = None):
        self.nlu_client = nlu_client

    @property
    def remote_enabled(self) -> bool:
        return self.nlu_client is not None

    async def resolve(self, text: str, session_key: str) -> Resolution:
        if self.nlu_client is None:
            return self.resolve_locally(text)

        try:
            return await self._resolve_remote(text, session_key)
        except Exception as e:
            logger.error(f"Dialogflow intent detection failed [Session {session_key}], using keyword fallback: {e}")
            return self.resolve_locally(text)

    async def _resolve_remote(self, text: str, session_key: str) -> Resolution:
        result = await self.nlu_client.detect_intent(text, session_key)

        intent = override_for(result.intent_name)
        if intent is not None:
            return Resolution(intent=intent, source=SOURCE_DIALOGFLOW, nlu_intent_name=result.intent_name)

        # Antwort des Agenten wird unverändert übernommen; leerer Text wird
        # später durch eine Entschuldigung ersetzt.
        return Resolution(
            intent=passthrough_intent_for(result.intent_name),
            source=SOURCE_DIALOGFLOW,
            nlu_intent_name=result.intent_name,
            fulfillment_text=result.fulfillment_text,
        )

    @staticmethod
    def resolve_locally(text: str) -> Resolution:
        return Resolution(intent=classify_local(text), source=SOURCE_KEYWORDS)
