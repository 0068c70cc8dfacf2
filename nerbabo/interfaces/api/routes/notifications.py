"""Endpoints for listing, acknowledging and reconciling notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from nerbabo.application.use_cases.notifications import (
    count_notifications,
    create_notification,
    delete_notification,
    delete_notifications_for_subject,
    get_notification,
    list_notifications,
    list_unread_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    reconcile_notifications,
    update_notification_status,
)
from nerbabo.application.use_cases.notifications.generators.missing_person_documents import (
    PERSON_SUBJECT,
)
from nerbabo.domain.entities import Notification, RunSummary, SubjectRef
from nerbabo.domain.exceptions import NotificationNotFoundError, StorageConflict
from nerbabo.infrastructure.database import get_db
from nerbabo.interfaces.api.schemas import (
    CategorySummaryRead,
    NotificationActor,
    NotificationCountRead,
    NotificationCreate,
    NotificationRead,
    NotificationStatusUpdate,
    OperationResult,
    ReconciliationSummaryRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    subject = notification.subject
    return NotificationRead(
        id=notification.id or 0,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        type_label=notification.type.label,
        status=notification.status,
        related_entity_type=subject.subject_type if subject else None,
        related_entity_id=subject.subject_id if subject else None,
        origin_tag=notification.origin_tag,
        action_url=notification.action_url,
        created_at=notification.created_at,
        updated_at=notification.updated_at,
        read_at=notification.read_at,
        read_by=notification.read_by,
    )


def _summary_to_schema(summary: RunSummary) -> ReconciliationSummaryRead:
    return ReconciliationSummaryRead(
        created=summary.created,
        updated=summary.updated,
        deleted=summary.deleted,
        skipped_duplicate=summary.skipped_duplicate,
        per_category_errors=dict(summary.per_category_errors),
        categories=[
            CategorySummaryRead(
                generator_id=category.generator_id,
                created=category.created,
                updated=category.updated,
                deleted=category.deleted,
                skipped_duplicate=category.skipped_duplicate,
                conflicts=category.conflicts,
                subject_errors=list(category.subject_errors),
                error=category.error,
            )
            for category in summary.categories
        ],
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notificação não encontrada.")


@router.get("/", response_model=list[NotificationRead])
def list_notifications_endpoint(db: Session = Depends(get_db)) -> list[NotificationRead]:
    """Return every notification, most recent first."""

    return [_notification_to_schema(notification) for notification in list_notifications(db)]


@router.get("/unread", response_model=list[NotificationRead])
def list_unread_notifications_endpoint(db: Session = Depends(get_db)) -> list[NotificationRead]:
    return [_notification_to_schema(notification) for notification in list_unread_notifications(db)]


@router.get("/count", response_model=NotificationCountRead)
def count_notifications_endpoint(db: Session = Depends(get_db)) -> NotificationCountRead:
    counts = count_notifications(db)
    return NotificationCountRead(total_count=counts.total, unread_count=counts.unread)


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification_endpoint(notification_id: int, db: Session = Depends(get_db)) -> NotificationRead:
    try:
        notification = get_notification(db, notification_id)
    except NotificationNotFoundError as exc:
        raise _not_found() from exc
    return _notification_to_schema(notification)


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification_endpoint(
    payload: NotificationCreate, db: Session = Depends(get_db)
) -> NotificationRead:
    """Create a manual notification, optionally linked to a person."""

    subject = None
    if payload.related_person_id is not None:
        subject = SubjectRef(subject_type=PERSON_SUBJECT, subject_id=payload.related_person_id)
    try:
        notification = create_notification(
            db,
            title=payload.title,
            message=payload.message,
            notification_type=payload.type,
            subject=subject,
            action_url=payload.action_url,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _notification_to_schema(notification)


@router.put("/mark-all-read", response_model=OperationResult)
def mark_all_notifications_as_read_endpoint(
    payload: NotificationActor, db: Session = Depends(get_db)
) -> OperationResult:
    marked = mark_all_notifications_as_read(db, actor=payload.user_id)
    if not marked:
        return OperationResult(
            affected=0, message="Não existem notificações não lidas para marcar como lidas."
        )
    return OperationResult(affected=marked, message=f"{marked} notificações foram marcadas como lidas.")


@router.put("/{notification_id}/mark-read", response_model=NotificationRead)
def mark_notification_as_read_endpoint(
    notification_id: int,
    payload: NotificationActor,
    db: Session = Depends(get_db),
) -> NotificationRead:
    try:
        notification = mark_notification_as_read(db, notification_id, actor=payload.user_id)
    except NotificationNotFoundError as exc:
        raise _not_found() from exc
    return _notification_to_schema(notification)


@router.put("/{notification_id}/status", response_model=NotificationRead)
def update_notification_status_endpoint(
    notification_id: int,
    payload: NotificationStatusUpdate,
    db: Session = Depends(get_db),
) -> NotificationRead:
    try:
        notification = update_notification_status(
            db, notification_id, payload.status, actor=payload.user_id
        )
    except NotificationNotFoundError as exc:
        raise _not_found() from exc
    except StorageConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _notification_to_schema(notification)


@router.delete("/person/{person_id}", response_model=OperationResult)
def delete_person_notifications_endpoint(
    person_id: int, db: Session = Depends(get_db)
) -> OperationResult:
    """Delete every notification linked to a person."""

    deleted = delete_notifications_for_subject(
        db, SubjectRef(subject_type=PERSON_SUBJECT, subject_id=person_id)
    )
    if not deleted:
        return OperationResult(affected=0, message="Não existem notificações para esta pessoa.")
    return OperationResult(
        affected=deleted, message=f"{deleted} notificações foram eliminadas para esta pessoa."
    )


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification_endpoint(notification_id: int, db: Session = Depends(get_db)) -> None:
    try:
        delete_notification(db, notification_id)
    except NotificationNotFoundError as exc:
        raise _not_found() from exc


@router.post("/generate", response_model=ReconciliationSummaryRead)
def generate_notifications_endpoint(db: Session = Depends(get_db)) -> ReconciliationSummaryRead:
    """Run every registered generator and reconcile the stored notifications."""

    return _summary_to_schema(reconcile_notifications(db))
