"""Demo-Referenzdaten für Mbarara. Wird nur in leere Tabellen geschrieben
(SEED_DEMO_DATA=true), damit lokale Tests ohne Admin-Eingaben möglich sind."""
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from refugee_bot.core.db_sqla import Contact, RegistrationStep, RequiredDocument, Service

logger = logging.getLogger(__name__)

SERVICES = [
    dict(category="Food", organization="World Food Programme (WFP)",
         services="Monthly food rations and cash transfers for registered refugees",
         location="Nakivale & Oruchinga settlements", contact_phone="+256 414 337 000"),
    dict(category="Health", organization="Mbarara Regional Referral Hospital",
         services="Emergency care, maternal health, HIV/TB treatment",
         location="Mbarara City", contact_phone="+256 485 421 000"),
    dict(category="Health", organization="Medical Teams International",
         services="Primary health care in settlement health centres",
         location="Nakivale settlement"),
    dict(category="Protection", organization="UNHCR Mbarara",
         services="Refugee protection, documentation support, resettlement information",
         location="Mbarara Sub-Office", contact_email="ugamb@unhcr.org"),
]

CONTACTS = [
    dict(entity="Uganda Police Emergency", phone="999", type="Emergency", is_urgent=True,
         description="Police, fire and ambulance"),
    dict(entity="Mbarara Regional Referral Hospital", phone="+256 485 421 000", type="Hospital",
         is_urgent=True, description="24h emergency ward"),
    dict(entity="OPM Refugee Desk Mbarara", phone="+256 485 420 700", type="General",
         description="Registration and settlement allocation"),
    dict(entity="UNHCR Fraud Hotline", email="ugakafraud@unhcr.org", type="Fraud",
         description="Report anyone asking for money for services"),
]

STEPS = [
    dict(step_number=1, title="Report to OPM",
         description="Go to the OPM Refugee Desk in Mbarara or at the settlement reception centre.",
         estimated_duration="1 day"),
    dict(step_number=2, title="Screening and interview",
         description="OPM and UNHCR staff record your details and reasons for seeking asylum."),
    dict(step_number=3, title="Biometric registration",
         description="Fingerprints and photo are taken for your refugee record."),
    dict(step_number=4, title="Receive documents",
         description="You receive an attestation letter and later a refugee ID card.",
         estimated_duration="2-4 weeks"),
]

DOCUMENTS = [
    dict(document_name="National ID or passport", is_essential=True,
         description="Any identity document from your country of origin"),
    dict(document_name="Birth certificates for children", is_essential=True),
    dict(document_name="Passport photos", is_essential=False),
    dict(document_name="Previous UNHCR or asylum papers", is_essential=False),
]


def seed_reference_data(db: Session) -> int:
    """Fügt Demo-Daten in leere Tabellen ein; gibt die Anzahl neuer Zeilen zurück."""
    inserted = 0
    for model, rows in ((Service, SERVICES), (Contact, CONTACTS),
                        (RegistrationStep, STEPS), (RequiredDocument, DOCUMENTS)):
        if db.scalar(select(func.count()).select_from(model)):
            continue
        db.add_all(model(**row) for row in rows)
        inserted += len(rows)
    db.commit()
    if inserted:
        logger.info(f"Seeded {inserted} demo reference rows")
    return inserted
