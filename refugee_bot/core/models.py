"""API- und Domänenmodelle des Bots: eingehende Nachrichten, Intents,
Referenzdaten-Snapshots und die ausgehende Bot-Antwort."""
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Twilio lehnt WhatsApp-Nachrichten über 1600 Zeichen ab.
MAX_REPLY_LENGTH = 1600
MAX_QUICK_REPLIES = 5


class Intent(str, Enum):
    REGISTRATION = "registration"
    FOOD = "food"
    SHELTER = "shelter"
    HEALTHCARE = "healthcare"
    EMERGENCY_CONTACTS = "emergency_contacts"
    WELCOME = "welcome"
    FALLBACK = "fallback"


class InboundMessage(BaseModel):
    """Eingehende Nachricht; existiert nur für die Dauer einer Anfrage."""

    model_config = ConfigDict(frozen=True)

    sender_id: str
    text: str
    message_id: Optional[str] = None


class BotResponse(BaseModel):
    """Ausgehende Antwort mit optionalen Quick Replies."""

    message: str = Field(min_length=1)
    quick_replies: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("message")
    @classmethod
    def _bound_message(cls, value: str) -> str:
        if len(value) > MAX_REPLY_LENGTH:
            return value[: MAX_REPLY_LENGTH - 3] + "..."
        return value

    @field_validator("quick_replies")
    @classmethod
    def _bound_quick_replies(cls, value: List[str]) -> List[str]:
        return value[:MAX_QUICK_REPLIES]


class NLUResult(BaseModel):
    """Ergebnis eines detectIntent-Aufrufs."""

    intent_name: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    fulfillment_text: str = ""


# Read-Modelle für Referenzdaten. Die Pipeline arbeitet nur mit diesen
# Snapshots, nie mit an eine DB-Session gebundenen ORM-Objekten.
class ServiceRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    organization: str
    services: str
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class ContactRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity: str
    type: str
    is_urgent: bool = False
    phone: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class RegistrationStepRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    step_number: int
    title: str
    description: str
    requirements: Optional[str] = None
    estimated_duration: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class RequiredDocumentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_name: str
    is_essential: bool = False
    description: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


# Schreib-Modelle für das Admin-Backend.
PHONE_PATTERN = r"^\+?[\d\s\-()]{10,}$"


class ServiceCreate(BaseModel):
    category: str = Field(min_length=1)
    organization: str = Field(min_length=1)
    services: str = Field(min_length=1)
    contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    contact_email: Optional[EmailStr] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class ContactCreate(BaseModel):
    entity: str = Field(min_length=1)
    type: str = Field(min_length=1)
    is_urgent: bool = False
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    description: Optional[str] = None
    notes: Optional[str] = None
