"""Persistence helpers for people checked by the notification generators."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from nerbabo.domain.entities import HabilitationLevel, Person
from nerbabo.infrastructure.models import PersonModel


class PersonRepository:
    """Read people in batches and maintain their document references."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_requiring_documents(self) -> list[Person]:
        """Return every person whose habilitation requires supporting documents."""

        query = (
            self.session.query(PersonModel)
            .filter(PersonModel.habilitation != HabilitationLevel.WITHOUT_PROOF.value)
            .order_by(PersonModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def get(self, person_id: int) -> Person | None:
        model = self.session.get(PersonModel, person_id)
        return self._to_entity(model) if model else None

    def get_many(self, person_ids: Iterable[int]) -> dict[int, Person]:
        ids = sorted(set(person_ids))
        if not ids:
            return {}
        models = self.session.query(PersonModel).filter(PersonModel.id.in_(ids)).all()
        return {model.id: self._to_entity(model) for model in models}

    def create(self, person: Person) -> Person:
        model = PersonModel()
        if person.id:
            model.id = person.id
        self._apply_entity_to_model(model, person)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, person: Person) -> Person:
        model = self.session.get(PersonModel, person.id)
        if model is None:
            msg = f"Person with id {person.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, person)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, person_id: int) -> None:
        self.session.query(PersonModel).filter(PersonModel.id == person_id).delete(
            synchronize_session="fetch"
        )
        self.session.commit()

    @staticmethod
    def _apply_entity_to_model(model: PersonModel, person: Person) -> None:
        model.first_name = person.first_name
        model.last_name = person.last_name
        model.habilitation = person.habilitation
        model.iban = person.iban
        model.identification_document_pdf_id = person.identification_document_pdf_id
        model.habilitation_comprovative_pdf_id = person.habilitation_comprovative_pdf_id
        model.iban_comprovative_pdf_id = person.iban_comprovative_pdf_id

    @staticmethod
    def _to_entity(model: PersonModel) -> Person:
        return Person(
            id=model.id,
            first_name=model.first_name,
            last_name=model.last_name,
            habilitation=model.habilitation,
            iban=model.iban,
            identification_document_pdf_id=model.identification_document_pdf_id,
            habilitation_comprovative_pdf_id=model.habilitation_comprovative_pdf_id,
            iban_comprovative_pdf_id=model.iban_comprovative_pdf_id,
        )


__all__ = ["PersonRepository"]
