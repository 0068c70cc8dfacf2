"""Domain entities exposed by the application."""

from .deficiency import Deficiency, compute_fingerprint, normalize_message
from .notification import Notification, NotificationStatus, NotificationType, SubjectRef
from .origin import CurrentOrigin, LegacyOrigin, OriginTag, classify_origin
from .person import HabilitationLevel, Person, PersonDocument
from .reconciliation import CategorySummary, RunSummary

__all__ = [
    "CategorySummary",
    "CurrentOrigin",
    "Deficiency",
    "HabilitationLevel",
    "LegacyOrigin",
    "Notification",
    "NotificationStatus",
    "NotificationType",
    "OriginTag",
    "Person",
    "PersonDocument",
    "RunSummary",
    "SubjectRef",
    "classify_origin",
    "compute_fingerprint",
    "normalize_message",
]
