"""Notification use cases: reconciliation plus the query/command facade."""

from .commands import (
    create_notification,
    delete_notification,
    delete_notifications_for_subject,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    update_notification_status,
)
from .generators import GenerationReport, MissingPersonDocumentGenerator, NotificationGenerator
from .queries import (
    NotificationCount,
    count_notifications,
    get_notification,
    list_notifications,
    list_unread_notifications,
)
from .reconcile import NotificationReconciler, reconcile_notifications
from .registry import DEFAULT_GENERATOR_FACTORIES, build_generators

__all__ = [
    "DEFAULT_GENERATOR_FACTORIES",
    "GenerationReport",
    "MissingPersonDocumentGenerator",
    "NotificationCount",
    "NotificationGenerator",
    "NotificationReconciler",
    "build_generators",
    "count_notifications",
    "create_notification",
    "delete_notification",
    "delete_notifications_for_subject",
    "get_notification",
    "list_notifications",
    "list_unread_notifications",
    "mark_all_notifications_as_read",
    "mark_notification_as_read",
    "reconcile_notifications",
    "update_notification_status",
]
