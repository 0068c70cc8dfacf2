"""Deficiency generators used by the notification reconciler."""

from .base import GenerationReport, NotificationGenerator
from .missing_person_documents import MissingPersonDocumentGenerator

__all__ = [
    "GenerationReport",
    "MissingPersonDocumentGenerator",
    "NotificationGenerator",
]
