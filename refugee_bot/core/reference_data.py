"""Lesender Zugriff auf die Referenzdaten (Services, Kontakte,
Registrierungsschritte, Dokumente).

Die Queries sind synchron (SQLAlchemy) und werden im ThreadPool ausgeführt,
damit der Event-Loop nicht blockiert. Jede Methode liefert eine geordnete,
ggf. leere Liste von Snapshots, nie None.
"""
import asyncio
import logging
from typing import Callable, List, TypeVar

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from refugee_bot.core.db_sqla import Contact, RegistrationStep, RequiredDocument, Service, SessionLocal
from refugee_bot.core.errors import UpstreamFailure
from refugee_bot.core.models import (
    ContactRecord,
    RegistrationStepRecord,
    RequiredDocumentRecord,
    ServiceRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReferenceDataGateway:
    """Fassade über die Referenzdaten-Tabellen."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def _run_sync(self, label: str, query: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            return query(db)
        except SQLAlchemyError as exc:
            logger.error(f"Database query '{label}' failed: {exc}")
            raise UpstreamFailure("database", label) from exc
        finally:
            db.close()

    async def _run(self, label: str, query: Callable[[Session], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._run_sync, label, query)

    # -- Services --

    async def services_by_category(self, category: str) -> List[ServiceRecord]:
        def query(db: Session) -> List[ServiceRecord]:
            rows = db.scalars(
                select(Service).where(Service.category == category).order_by(Service.organization)
            ).all()
            return [ServiceRecord.model_validate(row) for row in rows]

        services = await self._run("services_by_category", query)
        logger.debug(f"Fetched {len(services)} services for category: {category}")
        return services

    # -- Contacts --

    async def all_contacts(self) -> List[ContactRecord]:
        def query(db: Session) -> List[ContactRecord]:
            rows = db.scalars(
                select(Contact).order_by(Contact.is_urgent.desc(), Contact.type, Contact.entity)
            ).all()
            return [ContactRecord.model_validate(row) for row in rows]

        contacts = await self._run("all_contacts", query)
        logger.debug(f"Fetched {len(contacts)} total contacts")
        return contacts

    async def contacts_by_type(self, contact_type: str) -> List[ContactRecord]:
        def query(db: Session) -> List[ContactRecord]:
            rows = db.scalars(
                select(Contact)
                .where(Contact.type == contact_type)
                .order_by(Contact.is_urgent.desc(), Contact.entity)
            ).all()
            return [ContactRecord.model_validate(row) for row in rows]

        contacts = await self._run("contacts_by_type", query)
        logger.debug(f"Fetched {len(contacts)} contacts of type: {contact_type}")
        return contacts

    # -- Registration --

    async def registration_steps(self) -> List[RegistrationStepRecord]:
        def query(db: Session) -> List[RegistrationStepRecord]:
            rows = db.scalars(select(RegistrationStep).order_by(RegistrationStep.step_number)).all()
            return [RegistrationStepRecord.model_validate(row) for row in rows]

        return await self._run("registration_steps", query)

    async def required_documents(self) -> List[RequiredDocumentRecord]:
        def query(db: Session) -> List[RequiredDocumentRecord]:
            rows = db.scalars(
                select(RequiredDocument).order_by(
                    RequiredDocument.is_essential.desc(), RequiredDocument.document_name
                )
            ).all()
            return [RequiredDocumentRecord.model_validate(row) for row in rows]

        return await self._run("required_documents", query)


    # -- Health --

    async def ping(self) -> bool:
        """Prüft, ob die Datenbank erreichbar ist; wirft nie."""
        try:
            await self._run("ping", lambda db: db.execute(text("SELECT 1")).scalar())
        except UpstreamFailure:
            return False
        return True
