"""Domain entity representing a persisted notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Closed set of notification categories."""

    MISSING_DOCUMENT = "MissingDocument"
    INCOMPLETE_INFORMATION = "IncompleteInformation"
    GENERAL_ALERT = "GeneralAlert"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]


_TYPE_LABELS = {
    NotificationType.MISSING_DOCUMENT: "Documento em Falta",
    NotificationType.INCOMPLETE_INFORMATION: "Informação Incompleta",
    NotificationType.GENERAL_ALERT: "Alerta Geral",
}


class NotificationStatus(str, Enum):
    """Lifecycle status of a notification."""

    UNREAD = "Unread"
    READ = "Read"
    ARCHIVED = "Archived"


@dataclass(frozen=True)
class SubjectRef:
    """Back-reference to the entity a notification concerns."""

    subject_type: str
    subject_id: int

    def __str__(self) -> str:
        return f"{self.subject_type}:{self.subject_id}"


@dataclass
class Notification:
    """Actionable alert stored in the notification table.

    ``origin_tag`` identifies the generation logic that produced the record
    and stays ``None`` for manually created alerts. ``fingerprint`` is absent
    on rows written before fingerprints were persisted.
    """

    id: int | None
    title: str
    message: str
    type: NotificationType
    status: NotificationStatus = NotificationStatus.UNREAD
    subject: SubjectRef | None = None
    origin_tag: str | None = None
    fingerprint: str | None = None
    action_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    read_at: datetime | None = None
    read_by: str | None = None

    @property
    def is_unread(self) -> bool:
        return self.status is NotificationStatus.UNREAD


__all__ = ["Notification", "NotificationStatus", "NotificationType", "SubjectRef"]
