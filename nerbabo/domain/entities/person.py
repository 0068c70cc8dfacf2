"""Domain entity describing a person watched for missing documents."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HabilitationLevel(str, Enum):
    """Educational qualification levels recorded for a person."""

    WITHOUT_PROOF = "WithoutProof"
    WITHOUT_HABILITATION = "WithoutHabilitation"
    FIRST_YEAR = "FirstYear"
    SECOND_YEAR = "SecondYear"
    THIRD_YEAR = "ThirdYear"
    FOURTH_YEAR = "FourthYear"
    FIFTH_YEAR = "FifthYear"
    SIXTH_YEAR = "SixthYear"
    SEVENTH_YEAR = "SeventhYear"
    EIGHTH_YEAR = "EighthYear"
    NINTH_YEAR = "NinthYear"
    TENTH_YEAR = "TenthYear"
    ELEVENTH_YEAR = "EleventhYear"
    TWELFTH_YEAR = "TwelfthYear"
    POST_SECONDARY = "PostSecondary"
    BACHELORS = "Bachelors"
    UNDERGRADUATE = "Undergraduate"
    MASTERS = "Masters"
    DOCTORATE = "Doctorate"


class PersonDocument(str, Enum):
    """Attachments a person may be required to submit.

    Declaration order is the canonical order used when listing documents.
    """

    IDENTIFICATION_DOCUMENT = "IdentificationDocument"
    HABILITATION_COMPROVATIVE = "HabilitationComprovative"
    IBAN_COMPROVATIVE = "IbanComprovative"

    @property
    def label(self) -> str:
        return _DOCUMENT_LABELS[self]

    @property
    def position(self) -> int:
        return list(PersonDocument).index(self)


_DOCUMENT_LABELS = {
    PersonDocument.IDENTIFICATION_DOCUMENT: "Cópia do Documento de Identificação",
    PersonDocument.HABILITATION_COMPROVATIVE: "Comprovativo de Habilitações",
    PersonDocument.IBAN_COMPROVATIVE: "Comprovativo de IBAN",
}


@dataclass
class Person:
    """Subset of a person record needed by the document checks.

    ``habilitation`` is kept as the raw stored value; callers convert it with
    :class:`HabilitationLevel` and must handle unknown values.
    """

    id: int
    first_name: str
    last_name: str
    habilitation: str
    iban: str | None = None
    identification_document_pdf_id: int | None = None
    habilitation_comprovative_pdf_id: int | None = None
    iban_comprovative_pdf_id: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_iban(self) -> bool:
        return bool(self.iban and self.iban.strip())


__all__ = ["HabilitationLevel", "Person", "PersonDocument"]
