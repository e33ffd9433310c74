"""Admin-Router zur Pflege der Referenzdaten (Services, Kontakte) und
Einsicht in Registrierungsschritte und Dokumente."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from refugee_bot.core.config import settings
from refugee_bot.core.db_sqla import Contact, RegistrationStep, RequiredDocument, Service, get_db
from refugee_bot.core.models import (
    ContactCreate,
    ContactRecord,
    RegistrationStepRecord,
    RequiredDocumentRecord,
    ServiceCreate,
    ServiceRecord,
)

# Prüfen, ob das Admin-Backend aktiv ist
ADMIN_ENABLED = settings.enable_admin_backend

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


def _require_admin() -> None:
    if not ADMIN_ENABLED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin backend disabled")


@router.get("/services", response_model=List[ServiceRecord])
def list_services(category: Optional[str] = None, skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    """Listet Services, optional nach Kategorie gefiltert."""
    _require_admin()

    query = db.query(Service)
    if category:
        query = query.filter(Service.category == category)
    return query.order_by(Service.category, Service.organization).offset(skip).limit(limit).all()


@router.post("/services", response_model=ServiceRecord, status_code=status.HTTP_201_CREATED)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    _require_admin()

    service = Service(**data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info(f"Created new service id={service.id} organization='{service.organization}'")
    return service


@router.get("/contacts", response_model=List[ContactRecord])
def list_contacts(type: Optional[str] = None, skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    """Listet Kontakte (dringende zuerst), optional nach Typ gefiltert."""
    _require_admin()

    query = db.query(Contact)
    if type:
        query = query.filter(Contact.type == type)
    return query.order_by(Contact.is_urgent.desc(), Contact.entity).offset(skip).limit(limit).all()


@router.post("/contacts", response_model=ContactRecord, status_code=status.HTTP_201_CREATED)
def create_contact(data: ContactCreate, db: Session = Depends(get_db)):
    _require_admin()

    contact = Contact(**data.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)
    logger.info(f"Created new contact id={contact.id} entity='{contact.entity}'")
    return contact


@router.get("/registration-steps", response_model=List[RegistrationStepRecord])
def list_registration_steps(db: Session = Depends(get_db)):
    _require_admin()
    return db.query(RegistrationStep).order_by(RegistrationStep.step_number).all()


@router.get("/required-documents", response_model=List[RequiredDocumentRecord])
def list_required_documents(db: Session = Depends(get_db)):
    _require_admin()
    return db.query(RequiredDocument).order_by(
        RequiredDocument.is_essential.desc(), RequiredDocument.document_name
    ).all()
