"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .person_repository import PersonRepository

__all__ = [
    "NotificationRepository",
    "PersonRepository",
]
