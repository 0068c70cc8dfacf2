"""SQLAlchemy model for people watched by the document checks."""

from sqlalchemy import Column, Integer, String

from nerbabo.infrastructure.database import Base


class PersonModel(Base):
    """Database representation of a person."""

    __tablename__ = "person"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    habilitation = Column(String(50), nullable=False, default="WithoutProof")
    iban = Column(String(50), nullable=True)
    identification_document_pdf_id = Column(Integer, nullable=True)
    habilitation_comprovative_pdf_id = Column(Integer, nullable=True)
    iban_comprovative_pdf_id = Column(Integer, nullable=True)


__all__ = ["PersonModel"]
