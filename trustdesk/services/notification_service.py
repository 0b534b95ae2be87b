"""Notification helper logic for moderation outcomes."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import StrEnum
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Notification, User

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    GENERIC = "generic"
    MODERATION_APPROVED = "moderation_approved"
    MODERATION_REJECTED = "moderation_rejected"
    REPORT_NO_VIOLATION = "report_no_violation"
    REPORT_ACTION_TAKEN = "report_action_taken"
    ACCOUNT_WARNED = "account_warned"
    ACCOUNT_BLOCKED = "account_blocked"
    ACCOUNT_FROZEN = "account_frozen"
    ACCOUNT_DELETED = "account_deleted"
    ACCOUNT_MODERATION = "account_moderation"
    ACCOUNT_RESTORED = "account_restored"
    ACCOUNT_RESTRICTED = "account_restricted"
    PREMIUM_GRANTED = "premium_granted"
    PREMIUM_REVOKED = "premium_revoked"
    COPYRIGHT_REVOKED = "copyright_revoked"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"


DEFAULT_NOTIFICATION_TYPE = NotificationType.GENERIC


def create_notification(
    db: Session,
    *,
    user_id: UUID,
    content: str,
    actor_id: UUID | None = None,
    type_: NotificationType | str = DEFAULT_NOTIFICATION_TYPE,
    object_type: str | None = None,
    object_id: str | None = None,
) -> Notification:
    """Persist a new notification for ``user_id``.

    Moderation notices are attributed to the recipient when no ``actor_id``
    is supplied so the reviewing moderator is never exposed.
    """

    recipient = db.get(User, user_id)
    if recipient is None:
        raise ValueError("Recipient does not exist")

    notification = Notification(
        user_id=user_id,
        actor_id=actor_id or user_id,
        type=str(type_),
        object_type=object_type,
        object_id=object_id,
        content=content,
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def count_notifications(db: Session, user_id: UUID, *, type_: NotificationType | str | None = None) -> int:
    stmt = select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    if type_ is not None:
        stmt = stmt.where(Notification.type == str(type_))
    return int(db.scalar(stmt) or 0)


__all__ = [
    "NotificationType",
    "create_notification",
    "count_notifications",
]
