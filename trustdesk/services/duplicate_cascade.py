"""Apply a content decision to the author's identical copies still awaiting review."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from ..models import Comment, Post
from .content_state import apply_comment_decision, apply_post_decision, delete_linked_reports, refresh_comment_count
from .effects import CascadeDuplicates
from .moderation_context import TargetType

logger = logging.getLogger(__name__)


def _post_duplicates(db: Session, post: Post) -> list[Post]:
    if not post.content_hash:
        return []
    stmt = select(Post).where(
        Post.author_id == post.author_id,
        Post.content_hash == post.content_hash,
        Post.id != post.id,
        or_(Post.status == "moderation", and_(Post.status == "published", Post.is_nsfw.is_(True))),
    )
    return list(db.scalars(stmt))


def _comment_duplicates(db: Session, comment: Comment) -> list[Comment]:
    if not comment.content:
        return []
    stmt = select(Comment).where(
        Comment.author_id == comment.author_id,
        Comment.content == comment.content,
        Comment.id != comment.id,
        Comment.is_nsfw.is_(True),
        Comment.status == "approved",
    )
    return list(db.scalars(stmt))


def resolve_duplicates(db: Session, effect: CascadeDuplicates, *, now: datetime) -> int:
    """Return the number of duplicates that received ``effect.decision``.

    Duplicates share the primary item's decision; they get no decision row or
    notification of their own.
    """

    if effect.target_type == TargetType.POST:
        post = db.get(Post, effect.item_id)
        if post is None:
            return 0
        duplicates = _post_duplicates(db, post)
        for duplicate in duplicates:
            apply_post_decision(
                duplicate,
                effect.decision,
                now=now,
                reason=effect.reason,
                decision_id=effect.decision_id,
            )
            delete_linked_reports(db, "post", duplicate.id)
    elif effect.target_type == TargetType.COMMENT:
        comment = db.get(Comment, effect.item_id)
        if comment is None:
            return 0
        duplicates = _comment_duplicates(db, comment)
        for duplicate in duplicates:
            apply_comment_decision(duplicate, effect.decision)
            delete_linked_reports(db, "comment", duplicate.id)
        for post_id in {duplicate.post_id for duplicate in duplicates}:
            refresh_comment_count(db, post_id)
    else:
        raise ValueError(f"Duplicates cannot be resolved for {effect.target_type}")

    if duplicates:
        logger.info(
            "Applied %s to %s duplicate %s(s) of %s",
            effect.decision,
            len(duplicates),
            effect.target_type,
            effect.item_id,
        )
    return len(duplicates)


__all__ = ["resolve_duplicates"]
