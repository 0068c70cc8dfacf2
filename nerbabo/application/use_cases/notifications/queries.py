"""Read-only notification use cases consumed by the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from nerbabo.domain.entities import Notification, NotificationStatus
from nerbabo.domain.exceptions import NotificationNotFoundError
from nerbabo.infrastructure.repositories import NotificationRepository


@dataclass(frozen=True)
class NotificationCount:
    """Total and unread notification counters."""

    total: int
    unread: int


def list_notifications(session: Session, *, limit: int | None = None) -> list[Notification]:
    """Return every notification, most recent first."""

    return NotificationRepository(session).list(limit=limit)


def list_unread_notifications(session: Session, *, limit: int | None = None) -> list[Notification]:
    """Return the unread notifications, most recent first."""

    return NotificationRepository(session).list_unread(limit=limit)


def get_notification(session: Session, notification_id: int) -> Notification:
    notification = NotificationRepository(session).get(notification_id)
    if notification is None:
        raise NotificationNotFoundError(notification_id)
    return notification


def count_notifications(session: Session) -> NotificationCount:
    repository = NotificationRepository(session)
    return NotificationCount(
        total=repository.count(),
        unread=repository.count(status=NotificationStatus.UNREAD),
    )


__all__ = [
    "NotificationCount",
    "count_notifications",
    "get_notification",
    "list_notifications",
    "list_unread_notifications",
]
