"""Exceptions raised while generating and reconciling notifications."""

from __future__ import annotations

from nerbabo.domain.entities import SubjectRef


class NotificationError(Exception):
    """Base class for notification related failures."""


class SubjectProcessingError(NotificationError):
    """A single subject could not be evaluated by a generator."""

    def __init__(self, subject: SubjectRef, reason: str) -> None:
        super().__init__(f"{subject}: {reason}")
        self.subject = subject
        self.reason = reason


class GeneratorFailure(NotificationError):
    """A generator could not run at all, usually because its data source failed."""

    def __init__(self, generator_id: str, reason: str) -> None:
        super().__init__(f"Generator '{generator_id}' failed: {reason}")
        self.generator_id = generator_id
        self.reason = reason


class StorageConflict(NotificationError):
    """A concurrent writer already stored the unread notification being inserted."""


class StorageFailure(NotificationError):
    """The mutations of a category could not be committed."""

    def __init__(self, category: str, reason: str) -> None:
        super().__init__(f"Could not commit notifications for '{category}': {reason}")
        self.category = category
        self.reason = reason


class NotificationNotFoundError(NotificationError, LookupError):
    """The requested notification does not exist."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification with id {notification_id} not found")
        self.notification_id = notification_id


__all__ = [
    "GeneratorFailure",
    "NotificationError",
    "NotificationNotFoundError",
    "StorageConflict",
    "StorageFailure",
    "SubjectProcessingError",
]
