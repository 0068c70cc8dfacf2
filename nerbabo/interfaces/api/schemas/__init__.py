"""Pydantic schemas used by the API routes."""

from .notification import (
    CategorySummaryRead,
    NotificationActor,
    NotificationCountRead,
    NotificationCreate,
    NotificationRead,
    NotificationStatusUpdate,
    OperationResult,
    ReconciliationSummaryRead,
)

__all__ = [
    "CategorySummaryRead",
    "NotificationActor",
    "NotificationCountRead",
    "NotificationCreate",
    "NotificationRead",
    "NotificationStatusUpdate",
    "OperationResult",
    "ReconciliationSummaryRead",
]
