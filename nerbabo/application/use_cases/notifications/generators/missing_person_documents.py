"""Generator for people who have not submitted their required documents."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nerbabo.config import Settings
from nerbabo.domain.entities import (
    CurrentOrigin,
    Deficiency,
    HabilitationLevel,
    LegacyOrigin,
    Notification,
    NotificationType,
    Person,
    PersonDocument,
    SubjectRef,
    classify_origin,
)
from nerbabo.domain.exceptions import GeneratorFailure, SubjectProcessingError
from nerbabo.infrastructure.repositories import NotificationRepository, PersonRepository
from .base import GenerationReport, NotificationGenerator

logger = logging.getLogger(__name__)

PERSON_SUBJECT = "person"
CURRENT_ORIGIN = "MissingDocuments"

# Older releases emitted one notification per document, tagged by document.
# The very first release tagged them "Person" and only tracked the ID copy.
_LEGACY_VARIANT_DOCUMENTS = {
    "IdentificationDocument": PersonDocument.IDENTIFICATION_DOCUMENT,
    "HabilitationComprovative": PersonDocument.HABILITATION_COMPROVATIVE,
    "IbanComprovative": PersonDocument.IBAN_COMPROVATIVE,
}


def pending_documents(person: Person) -> list[PersonDocument]:
    """Return the documents not uploaded yet, ignoring the habilitation level.

    The IBAN comprovative is only pending when an IBAN was filled in.
    """

    missing: list[PersonDocument] = []
    if person.identification_document_pdf_id is None:
        missing.append(PersonDocument.IDENTIFICATION_DOCUMENT)
    if person.habilitation_comprovative_pdf_id is None:
        missing.append(PersonDocument.HABILITATION_COMPROVATIVE)
    if person.has_iban and person.iban_comprovative_pdf_id is None:
        missing.append(PersonDocument.IBAN_COMPROVATIVE)
    return sorted(missing, key=lambda document: document.position)


def missing_documents(person: Person, habilitation: HabilitationLevel) -> list[PersonDocument]:
    """Return the documents ``person`` still has to submit, in canonical order.

    People without proof of habilitation are not required to submit anything.
    """

    if habilitation is HabilitationLevel.WITHOUT_PROOF:
        return []
    return pending_documents(person)


def render_missing_documents(person: Person, documents: list[PersonDocument]) -> tuple[str, str]:
    """Build the title and bulleted message listing ``documents``."""

    title = "Documento em Falta" if len(documents) == 1 else "Documentos em Falta"
    document_list = "\n".join(f"- {document.label}" for document in documents)
    message = (
        f"Documentação em falta para {person.full_name}.\n"
        f"Os seguintes ficheiros não foram submetidos:\n{document_list}"
    )
    return title, message


class MissingPersonDocumentGenerator(NotificationGenerator):
    """Flag people missing their identification, habilitation or IBAN proofs."""

    generator_id = "MissingPersonDocument"
    description = (
        "Verifica pessoas com documentos em falta (Identificação, Habilitações, IBAN)."
    )
    category = NotificationType.MISSING_DOCUMENT
    subject_type = PERSON_SUBJECT
    current_origin = CURRENT_ORIGIN

    def __init__(
        self,
        session: Session,
        *,
        people_url_template: str = "/people/{person_id}",
    ) -> None:
        self.people = PersonRepository(session)
        self.notifications = NotificationRepository(session)
        self.people_url_template = people_url_template

    @classmethod
    def from_settings(cls, session: Session, settings: Settings) -> "MissingPersonDocumentGenerator":
        return cls(session, people_url_template=settings.people_url_template)

    def generate(self) -> GenerationReport:
        try:
            people = self.people.list_requiring_documents()
        except SQLAlchemyError as exc:
            logger.exception("Could not load people for %s", self.generator_id)
            raise GeneratorFailure(self.generator_id, str(exc)) from exc

        logger.info("Checking %s people for missing documents.", len(people))

        report = GenerationReport()
        for person in people:
            subject = SubjectRef(subject_type=PERSON_SUBJECT, subject_id=person.id)
            try:
                deficiency = self.evaluate(person)
            except Exception as exc:  # one corrupt person must not block the others
                logger.warning("Skipping person %s: %s", person.id, exc)
                report.subject_errors.append(SubjectProcessingError(subject, str(exc)))
                continue
            if deficiency is None:
                report.compliant_subjects.add(subject)
            else:
                report.deficiencies.append(deficiency)

        logger.info(
            "Found %s people with missing documents (%s skipped).",
            len(report.deficiencies),
            len(report.subject_errors),
        )
        return report

    def evaluate(self, person: Person) -> Deficiency | None:
        """Return the deficiency for ``person`` or ``None`` when nothing is missing."""

        habilitation = self._habilitation(person)
        documents = missing_documents(person, habilitation)
        if not documents:
            return None

        title, message = render_missing_documents(person, documents)
        return Deficiency(
            subject=SubjectRef(subject_type=PERSON_SUBJECT, subject_id=person.id),
            category=self.category,
            title=title,
            message=message,
            action_url=self.people_url_template.format(person_id=person.id),
            details={
                "documents": [document.value for document in documents],
                "subject_name": person.full_name,
            },
        )

    def find_obsolete(self) -> list[int]:
        try:
            unread = [
                notification
                for notification in self.notifications.find(
                    self.category, subject_type=self.subject_type
                )
                if notification.is_unread
                and notification.subject is not None
                and notification.origin_tag is not None
            ]
            people = self.people.get_many(
                notification.subject.subject_id for notification in unread
            )
        except SQLAlchemyError as exc:
            logger.exception("Could not load notifications for %s", self.generator_id)
            raise GeneratorFailure(self.generator_id, str(exc)) from exc

        obsolete: list[int] = []
        for notification in unread:
            person = people.get(notification.subject.subject_id)
            if person is None:
                obsolete.append(notification.id)
                continue
            if self._is_resolved(notification, person):
                obsolete.append(notification.id)

        logger.info("Found %s notifications to cleanup.", len(obsolete))
        return obsolete

    def _is_resolved(self, notification: Notification, person: Person) -> bool:
        """Decide from the uploads alone whether ``notification`` is stale.

        The stored habilitation is compared, never parsed, so people that
        ``generate`` has to skip can still have resolved notifications cleaned.
        """

        without_proof = person.habilitation == HabilitationLevel.WITHOUT_PROOF.value
        pending = pending_documents(person)
        origin = classify_origin(notification.origin_tag, self.current_origin)
        if isinstance(origin, CurrentOrigin):
            return without_proof or not pending
        if isinstance(origin, LegacyOrigin):
            document = _LEGACY_VARIANT_DOCUMENTS.get(
                origin.variant or "", PersonDocument.IDENTIFICATION_DOCUMENT
            )
            # The IBAN proof is tied to the IBAN, not to the habilitation.
            if document is PersonDocument.IBAN_COMPROVATIVE:
                return document not in pending
            return without_proof or document not in pending
        raise TypeError(f"Unsupported origin tag {origin!r}")

    @staticmethod
    def _habilitation(person: Person) -> HabilitationLevel:
        try:
            return HabilitationLevel(person.habilitation)
        except ValueError as exc:
            raise ValueError(f"unknown habilitation '{person.habilitation}'") from exc


__all__ = [
    "CURRENT_ORIGIN",
    "MissingPersonDocumentGenerator",
    "PERSON_SUBJECT",
    "missing_documents",
    "pending_documents",
    "render_missing_documents",
]
