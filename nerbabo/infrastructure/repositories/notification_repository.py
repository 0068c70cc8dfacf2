"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nerbabo.domain.entities import (
    Notification,
    NotificationStatus,
    NotificationType,
    SubjectRef,
)
from nerbabo.domain.exceptions import StorageConflict
from nerbabo.infrastructure.models import NotificationModel
from nerbabo.utils import storage_now, to_app_time, to_storage_time


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Mutating methods commit by default. Passing ``commit=False`` only flushes,
    leaving the caller in charge of the surrounding transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        *,
        status: NotificationStatus | None = None,
        limit: int | None = None,
    ) -> list[Notification]:
        query = self.session.query(NotificationModel)
        if status is not None:
            query = query.filter(NotificationModel.status == status.value)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_unread(self, *, limit: int | None = None) -> list[Notification]:
        return self.list(status=NotificationStatus.UNREAD, limit=limit)

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def count(self, *, status: NotificationStatus | None = None) -> int:
        query = self.session.query(func.count(NotificationModel.id))
        if status is not None:
            query = query.filter(NotificationModel.status == status.value)
        return int(query.scalar() or 0)

    def find(
        self,
        category: NotificationType,
        subject: SubjectRef | None = None,
        *,
        subject_type: str | None = None,
    ) -> list[Notification]:
        """Return every notification of ``category`` regardless of its status."""

        query = self.session.query(NotificationModel).filter(
            NotificationModel.type == category.value
        )
        if subject is not None:
            query = query.filter(
                NotificationModel.subject_type == subject.subject_type,
                NotificationModel.subject_id == subject.subject_id,
            )
        elif subject_type is not None:
            query = query.filter(NotificationModel.subject_type == subject_type)
        query = query.order_by(NotificationModel.id.asc())
        return [self._to_entity(model) for model in query.all()]

    def find_unread(
        self,
        category: NotificationType,
        subject: SubjectRef,
        *,
        origin_tag: str | None,
    ) -> Notification | None:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.type == category.value,
            NotificationModel.subject_type == subject.subject_type,
            NotificationModel.subject_id == subject.subject_id,
            NotificationModel.status == NotificationStatus.UNREAD.value,
        )
        if origin_tag is None:
            query = query.filter(NotificationModel.origin_tag.is_(None))
        else:
            query = query.filter(NotificationModel.origin_tag == origin_tag)
        model = query.order_by(NotificationModel.id.desc()).first()
        return self._to_entity(model) if model else None

    def insert(self, notification: Notification, *, commit: bool = True) -> Notification:
        """Persist ``notification`` and return it with its identifier.

        Raises :class:`StorageConflict` when the unread notification for the same
        subject, category and origin already exists.
        """

        model = NotificationModel()
        self._apply_entity_to_model(model, notification, include_creation_fields=True)
        try:
            with self.session.begin_nested():
                self.session.add(model)
        except IntegrityError as exc:
            raise StorageConflict(
                f"Unread {notification.type.value} notification already exists for "
                f"{notification.subject}"
            ) from exc
        self._finish(commit)
        self.session.refresh(model)
        return self._to_entity(model)

    def update_content(
        self,
        notification_id: int,
        *,
        title: str,
        message: str,
        fingerprint: str | None,
        action_url: str | None = None,
        updated_at: datetime | None = None,
        commit: bool = True,
    ) -> Notification:
        model = self._get_model(notification_id)
        model.title = title
        model.message = message
        model.fingerprint = fingerprint
        model.action_url = action_url
        model.updated_at = to_storage_time(updated_at) or storage_now()
        self._finish(commit)
        return self._to_entity(model)

    def update_status(
        self,
        notification_id: int,
        status: NotificationStatus,
        *,
        actor: str | None = None,
        commit: bool = True,
    ) -> Notification:
        model = self._get_model(notification_id)
        now = storage_now()
        model.status = status.value
        if status is NotificationStatus.UNREAD:
            model.read_at = None
            model.read_by = None
        elif model.read_at is None:
            model.read_at = now
            model.read_by = actor
        model.updated_at = now
        self._finish(commit)
        return self._to_entity(model)

    def mark_as_read(self, notification_id: int, *, actor: str) -> Notification:
        """Move an unread notification to read; other statuses are left as they are."""

        model = self._get_model(notification_id)
        if model.status != NotificationStatus.UNREAD.value:
            return self._to_entity(model)
        now = storage_now()
        model.status = NotificationStatus.READ.value
        model.read_at = now
        model.read_by = actor
        model.updated_at = now
        self._finish(True)
        return self._to_entity(model)

    def mark_all_as_read(self, *, actor: str) -> int:
        models = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.status == NotificationStatus.UNREAD.value)
            .all()
        )
        if not models:
            return 0
        now = storage_now()
        for model in models:
            model.status = NotificationStatus.READ.value
            model.read_at = now
            model.read_by = actor
            model.updated_at = now
        self._finish(True)
        return len(models)

    def delete(self, notification_id: int) -> bool:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return False
        self.session.delete(model)
        self._finish(True)
        return True

    def delete_many(self, notification_ids: Iterable[int], *, commit: bool = True) -> int:
        ids = sorted({notification_id for notification_id in notification_ids if notification_id is not None})
        if not ids:
            return 0
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id.in_(ids))
            .delete(synchronize_session="fetch")
        )
        self._finish(commit)
        return int(deleted or 0)

    def delete_for_subject(self, subject: SubjectRef) -> int:
        deleted = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.subject_type == subject.subject_type,
                NotificationModel.subject_id == subject.subject_id,
            )
            .delete(synchronize_session="fetch")
        )
        self._finish(True)
        return int(deleted or 0)

    def _get_model(self, notification_id: int) -> NotificationModel:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        return model

    def _finish(self, commit: bool) -> None:
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel,
        notification: Notification,
        *,
        include_creation_fields: bool,
    ) -> None:
        now = storage_now()
        if include_creation_fields:
            model.created_at = to_storage_time(notification.created_at) or now
        model.updated_at = to_storage_time(notification.updated_at) or now
        model.title = notification.title
        model.message = notification.message
        model.type = notification.type.value
        model.status = notification.status.value
        if notification.subject is not None:
            model.subject_type = notification.subject.subject_type
            model.subject_id = notification.subject.subject_id
        else:
            model.subject_type = None
            model.subject_id = None
        model.origin_tag = notification.origin_tag
        model.fingerprint = notification.fingerprint
        model.action_url = notification.action_url
        model.read_at = to_storage_time(notification.read_at)
        model.read_by = notification.read_by

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        subject = None
        if model.subject_type is not None and model.subject_id is not None:
            subject = SubjectRef(subject_type=model.subject_type, subject_id=model.subject_id)
        return Notification(
            id=model.id,
            title=model.title,
            message=model.message,
            type=NotificationType(model.type),
            status=NotificationStatus(model.status),
            subject=subject,
            origin_tag=model.origin_tag,
            fingerprint=model.fingerprint,
            action_url=model.action_url,
            created_at=to_app_time(model.created_at),
            updated_at=to_app_time(model.updated_at),
            read_at=to_app_time(model.read_at),
            read_by=model.read_by,
        )


__all__ = ["NotificationRepository"]
