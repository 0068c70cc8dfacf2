"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from nerbabo.domain.entities import NotificationStatus, NotificationType


class NotificationCreate(BaseModel):
    """Payload used to create a manual notification."""

    title: str = Field(..., min_length=1, max_length=200, description="Título da notificação")
    message: str = Field(..., min_length=1, max_length=1000, description="Mensagem")
    type: NotificationType = NotificationType.GENERAL_ALERT
    related_person_id: int | None = None
    action_url: str | None = Field(default=None, max_length=500)


class NotificationActor(BaseModel):
    """Identity of the user acting on notifications."""

    user_id: str = Field(..., min_length=1, max_length=450)


class NotificationStatusUpdate(BaseModel):
    """Payload used to change the status of a notification."""

    status: NotificationStatus
    user_id: str | None = Field(default=None, max_length=450)


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    title: str
    message: str
    type: NotificationType
    type_label: str
    status: NotificationStatus
    related_entity_type: str | None = None
    related_entity_id: int | None = None
    origin_tag: str | None = None
    action_url: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    read_at: datetime | None = None
    read_by: str | None = None


class NotificationCountRead(BaseModel):
    total_count: int
    unread_count: int


class OperationResult(BaseModel):
    """Outcome of a command that does not return a notification."""

    affected: int
    message: str


class CategorySummaryRead(BaseModel):
    generator_id: str
    created: int
    updated: int
    deleted: int
    skipped_duplicate: int
    conflicts: int
    subject_errors: list[str] = Field(default_factory=list)
    error: str | None = None


class ReconciliationSummaryRead(BaseModel):
    """Result of a reconciliation run."""

    created: int
    updated: int
    deleted: int
    skipped_duplicate: int
    per_category_errors: dict[str, str] = Field(default_factory=dict)
    categories: list[CategorySummaryRead] = Field(default_factory=list)


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
