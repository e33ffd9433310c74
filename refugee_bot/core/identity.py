"""Abgeleitete Kennungen für Absender: Session-Key für Dialogflow und
maskierte Telefonnummer für Logs. Beides sind getrennte, reine Funktionen,
damit nie versehentlich das eine als das andere geloggt wird."""
import hashlib

SESSION_PREFIX = "user-"


def derive_session_key(sender_id: str) -> str:
    """Stabiler, nicht umkehrbarer Session-Key aus der Absenderadresse.

    Gleiche Eingabe ergibt immer denselben Key (Dialogflow-Kontext bleibt
    erhalten), die Nummer selbst ist aus dem Key nicht rekonstruierbar.
    """
    digest = hashlib.sha256(sender_id.encode("utf-8")).hexdigest()
    return f"{SESSION_PREFIX}{digest[:24]}"


def mask_phone_number(phone: str) -> str:
    # 'whatsapp:+256700123489' -> '+2***89'
    phone = phone.split(":", 1)[-1]
    if len(phone) < 4:
        return "***"
    return f"{phone[:2]}***{phone[-2:]}"
