"""Role checks that run before any moderation command mutates state."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import Comment, Post, User
from .moderation_context import Actor, ModerationAction, TargetType

logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({"moderator", "admin"})

# Accounts in these states lose staff rights until restored.
DISABLED_STATUSES = frozenset({"deleted", "blocked"})

ADMIN_ONLY_ACTIONS = frozenset(
    {
        ModerationAction.GRANT_PREMIUM,
        ModerationAction.REVOKE_PREMIUM,
        ModerationAction.DELETE_USER,
        ModerationAction.UNVERIFY_USER,
        ModerationAction.REVOKE_COPYRIGHT,
    }
)

# Actions that may never land on an administrator or on content an administrator wrote.
PUNITIVE_ACTIONS: dict[TargetType, frozenset[ModerationAction]] = {
    TargetType.USER: frozenset(
        {
            ModerationAction.BAN_USER,
            ModerationAction.FREEZE_USER,
            ModerationAction.DELETE_USER,
            ModerationAction.WARN_USER,
            ModerationAction.MODERATION_USER,
            ModerationAction.SHADOW_BAN,
            ModerationAction.RESTRICT_FOLLOW,
            ModerationAction.RESTRICT_LIKE,
            ModerationAction.RESTRICT_COMMENT,
            ModerationAction.REVOKE_COPYRIGHT,
            ModerationAction.DISMISS_CONTENT,
        }
    ),
    TargetType.POST: frozenset(
        {
            ModerationAction.REJECT_CONTENT,
            ModerationAction.REMOVE_POST,
            ModerationAction.ARCHIVE_POST,
            ModerationAction.DISMISS_CONTENT,
        }
    ),
    TargetType.COMMENT: frozenset(
        {
            ModerationAction.REJECT_CONTENT,
            ModerationAction.REMOVE_COMMENT,
            ModerationAction.DISMISS_CONTENT,
        }
    ),
}


def _stored_role(db: Session, user_id: UUID) -> str | None:
    role = db.scalar(select(User.role).where(User.id == user_id))
    return role.lower() if role else None


def require_staff(db: Session, actor: Actor | None) -> Actor:
    """Return ``actor`` with its current stored role, or reject non-staff callers.

    The claimed role is ignored. Role and status are read from the account row
    on every call, so a demotion or ban takes effect on the next command.
    """

    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    account = db.execute(select(User.role, User.status).where(User.id == actor.id)).one_or_none()
    if account is None or account.status in DISABLED_STATUSES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    role = (account.role or "user").lower()
    if role not in STAFF_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return Actor(id=actor.id, role=role)


def _target_owner_role(db: Session, target_type: TargetType, target_id: UUID) -> str | None:
    if target_type is TargetType.USER:
        return _stored_role(db, target_id)
    if target_type is TargetType.POST:
        stmt = select(User.role).join(Post, Post.author_id == User.id).where(Post.id == target_id)
    elif target_type is TargetType.COMMENT:
        stmt = select(User.role).join(Comment, Comment.author_id == User.id).where(Comment.id == target_id)
    else:
        return None
    role = db.scalar(stmt)
    return role.lower() if role else None


def authorize(
    db: Session,
    actor: Actor | None,
    action: ModerationAction,
    target_type: TargetType,
    target_id: UUID,
) -> Actor:
    """Gate a single command; raises ``HTTPException`` (401/403) when it may not run."""

    staff = require_staff(db, actor)

    if action in ADMIN_ONLY_ACTIONS and not staff.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This action is restricted to administrators")

    if action in PUNITIVE_ACTIONS.get(target_type, frozenset()):
        if _target_owner_role(db, target_type, target_id) == "admin":
            logger.info("Blocked %s by %s against protected %s %s", action, staff.id, target_type, target_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Administrator accounts cannot be targeted by this action",
            )

    return staff


__all__ = ["ADMIN_ONLY_ACTIONS", "PUNITIVE_ACTIONS", "STAFF_ROLES", "authorize", "require_staff"]
