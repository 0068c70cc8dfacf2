"""Shared fixtures: an isolated in-memory database per test."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_TIMEZONE", "UTC")

from nerbabo.domain.entities import Person  # noqa: E402
from nerbabo.infrastructure.database import (  # noqa: E402
    build_engine,
    build_session_factory,
    initialize_database,
)
from nerbabo.infrastructure.repositories import PersonRepository  # noqa: E402


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    initialize_database(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    db = build_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def add_person(session):
    """Persist a person; by default one with a habilitation and nothing uploaded."""

    repository = PersonRepository(session)

    def _add(person_id: int, **overrides) -> Person:
        values = {
            "id": person_id,
            "first_name": "Ana",
            "last_name": "Silva",
            "habilitation": "Undergraduate",
            "iban": None,
            "identification_document_pdf_id": None,
            "habilitation_comprovative_pdf_id": None,
            "iban_comprovative_pdf_id": None,
        }
        values.update(overrides)
        return repository.create(Person(**values))

    return _add


@pytest.fixture()
def update_person(session):
    repository = PersonRepository(session)

    def _update(person_id: int, **changes) -> Person:
        person = repository.get(person_id)
        assert person is not None
        for key, value in changes.items():
            setattr(person, key, value)
        return repository.update(person)

    return _update
