"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, text

from nerbabo.infrastructure.database import Base
from nerbabo.utils import storage_now

_UNREAD_ONLY = text("status = 'Unread'")


class NotificationModel(Base):
    """Database representation for notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index(
            "uq_notification_unread_per_subject",
            "subject_type",
            "subject_id",
            "type",
            "origin_tag",
            unique=True,
            sqlite_where=_UNREAD_ONLY,
            postgresql_where=_UNREAD_ONLY,
        ),
        Index("ix_notification_type_subject", "type", "subject_type", "subject_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default="Unread", index=True)
    subject_type = Column(String(100), nullable=True)
    subject_id = Column(Integer, nullable=True)
    origin_tag = Column(String(100), nullable=True)
    fingerprint = Column(String(64), nullable=True)
    action_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=storage_now)
    updated_at = Column(DateTime(), nullable=False, default=storage_now)
    read_at = Column(DateTime(), nullable=True)
    read_by = Column(String(450), nullable=True)


__all__ = ["NotificationModel"]
