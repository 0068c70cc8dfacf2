"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .person import PersonModel

__all__ = [
    "NotificationModel",
    "PersonModel",
]
