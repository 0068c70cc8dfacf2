"""Notification use cases that change state on behalf of a user.

None of these touch the category or origin tag of a notification, so records
produced by the reconciler stay recognisable after being read or archived.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nerbabo.domain.entities import (
    Notification,
    NotificationStatus,
    NotificationType,
    SubjectRef,
)
from nerbabo.domain.exceptions import NotificationNotFoundError, StorageConflict
from nerbabo.infrastructure.repositories import NotificationRepository
from nerbabo.utils import app_now

logger = logging.getLogger(__name__)


def create_notification(
    session: Session,
    *,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.GENERAL_ALERT,
    subject: SubjectRef | None = None,
    action_url: str | None = None,
) -> Notification:
    """Create a manual notification.

    Manual notifications carry no origin tag, so the reconciler never adopts
    or removes them.
    """

    title = title.strip()
    message = message.strip()
    if not title:
        raise ValueError("O título é obrigatório.")
    if not message:
        raise ValueError("A mensagem é obrigatória.")

    now = app_now()
    notification = Notification(
        id=None,
        title=title,
        message=message,
        type=notification_type,
        status=NotificationStatus.UNREAD,
        subject=subject,
        origin_tag=None,
        fingerprint=None,
        action_url=action_url,
        created_at=now,
        updated_at=now,
    )
    saved = NotificationRepository(session).insert(notification)
    logger.info("Notification created successfully with ID %s", saved.id)
    return saved


def mark_notification_as_read(session: Session, notification_id: int, *, actor: str) -> Notification:
    """Mark an unread notification as read and stamp who read it.

    Read and archived notifications are returned unchanged, keeping their
    first reader.
    """

    repository = NotificationRepository(session)
    current = repository.get(notification_id)
    if current is None:
        raise NotificationNotFoundError(notification_id)
    if not current.is_unread:
        logger.info("Notification %s is already %s", notification_id, current.status.value)
        return current
    notification = repository.mark_as_read(notification_id, actor=actor)
    logger.info("Notification %s marked as read by user %s", notification_id, actor)
    return notification


def mark_all_notifications_as_read(session: Session, *, actor: str) -> int:
    """Mark every unread notification as read and return how many changed."""

    marked = NotificationRepository(session).mark_all_as_read(actor=actor)
    logger.info("Marked %s notifications as read", marked)
    return marked


def update_notification_status(
    session: Session,
    notification_id: int,
    status: NotificationStatus,
    *,
    actor: str | None = None,
) -> Notification:
    """Change only the status of a notification.

    Moving a notification back to unread is refused when another unread
    notification already covers the same subject, category and origin.
    """

    repository = NotificationRepository(session)
    current = repository.get(notification_id)
    if current is None:
        raise NotificationNotFoundError(notification_id)
    if current.status is status:
        return current

    if status is NotificationStatus.UNREAD and current.subject is not None and current.origin_tag:
        existing = repository.find_unread(current.type, current.subject, origin_tag=current.origin_tag)
        if existing is not None and existing.id != notification_id:
            raise StorageConflict(
                f"Notification {existing.id} is already unread for {current.subject}"
            )

    try:
        updated = repository.update_status(notification_id, status, actor=actor)
    except IntegrityError as exc:
        session.rollback()
        raise StorageConflict(str(exc.orig)) from exc
    logger.info("Notification %s moved to %s", notification_id, status.value)
    return updated


def delete_notification(session: Session, notification_id: int) -> None:
    """Delete one notification."""

    if not NotificationRepository(session).delete(notification_id):
        raise NotificationNotFoundError(notification_id)
    logger.info("Notification deleted successfully with ID %s", notification_id)


def delete_notifications_for_subject(session: Session, subject: SubjectRef) -> int:
    """Delete every notification attached to ``subject`` and return the count."""

    deleted = NotificationRepository(session).delete_for_subject(subject)
    logger.info("Deleted %s notifications for %s", deleted, subject)
    return deleted


__all__ = [
    "create_notification",
    "delete_notification",
    "delete_notifications_for_subject",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
    "update_notification_status",
]
