"""State transitions shared by content handlers and the duplicate cascade."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..models import Comment, Post, Report

# Posts in any other status, drafts included, are out of reach of moderation.
OPEN_POST_STATUSES = frozenset({"moderation", "published"})
TERMINAL_COMMENT_STATUSES = frozenset({"rejected", "removed"})

APPROVED = "approved"
REMOVED = "removed"
DISMISSED = "dismissed"


def apply_post_decision(
    post: Post,
    decision: str,
    *,
    now: datetime,
    reason: str | None = None,
    decision_id: UUID | None = None,
) -> None:
    if decision == APPROVED:
        post.status = "published"
        post.is_nsfw = False
        post.moderation_reason = None
        post.moderation_category = None
        post.moderation_due_at = None
    elif decision in (REMOVED, DISMISSED):
        post.status = "removed"
        post.is_nsfw = False
        post.removed_at = now
        post.removal_reason = reason
        post.removal_decision_id = decision_id if decision == REMOVED else None
    else:
        raise ValueError(f"Unsupported post decision: {decision}")


def apply_comment_decision(comment: Comment, decision: str) -> None:
    if decision == APPROVED:
        comment.status = "approved"
        comment.is_nsfw = False
        comment.moderation_reason = None
        comment.moderation_category = None
    elif decision == REMOVED:
        comment.status = "rejected"
        comment.is_nsfw = False
    elif decision == DISMISSED:
        comment.status = "removed"
    else:
        raise ValueError(f"Unsupported comment decision: {decision}")


def refresh_comment_count(db: Session, post_id: UUID) -> int:
    """Recount visible comments on ``post_id`` and cache the result on the post."""

    db.flush()
    count = int(
        db.scalar(
            select(func.count(Comment.id)).where(
                Comment.post_id == post_id,
                Comment.status == "approved",
                Comment.is_nsfw.is_(False),
            )
        )
        or 0
    )
    post = db.get(Post, post_id)
    if post is not None:
        post.comment_count = count
    return count


def linked_reports(db: Session, content_type: str, content_id: UUID | str, *, pending_only: bool = False) -> list[Report]:
    stmt = select(Report).where(Report.content_type == content_type, Report.content_id == str(content_id))
    if pending_only:
        stmt = stmt.where(Report.status == "pending")
    return list(db.scalars(stmt.order_by(Report.created_at.asc())))


def delete_linked_reports(db: Session, content_type: str, content_id: UUID | str) -> int:
    result = db.execute(
        delete(Report)
        .where(Report.content_type == content_type, Report.content_id == str(content_id))
    )
    return int(result.rowcount or 0)


def unique_reporters(reports: list[Report]) -> list[UUID]:
    seen: dict[UUID, None] = {}
    for report in reports:
        seen.setdefault(report.reporter_id, None)
    return list(seen)


__all__ = [
    "APPROVED",
    "DISMISSED",
    "OPEN_POST_STATUSES",
    "REMOVED",
    "TERMINAL_COMMENT_STATUSES",
    "apply_comment_decision",
    "apply_post_decision",
    "delete_linked_reports",
    "linked_reports",
    "refresh_comment_count",
    "unique_reporters",
]
