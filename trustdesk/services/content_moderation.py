"""Moderation handlers for posts and comments."""
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from ..models import Comment, Post
from .account_moderation import deactivate_account
from .content_state import (
    APPROVED,
    DISMISSED,
    OPEN_POST_STATUSES,
    REMOVED,
    TERMINAL_COMMENT_STATUSES,
    apply_comment_decision,
    apply_post_decision,
    delete_linked_reports,
    linked_reports,
    refresh_comment_count,
    unique_reporters,
)
from .effects import CascadeDuplicates, Effect, Notify, SendEmail
from .moderation_context import ActionContext, ModerationCommand, TargetType
from .notification_service import NotificationType

logger = logging.getLogger(__name__)

_NO_VIOLATION_NOTICE = "We reviewed the content you reported and found no violation of our guidelines."
_ACTION_TAKEN_NOTICE = "We reviewed the content you reported and took action. Thank you for helping keep the community safe."


def _open_post(db: Session, cmd: ModerationCommand) -> Post | None:
    post = db.get(Post, cmd.target_id)
    if post is None or post.status not in OPEN_POST_STATUSES:
        logger.debug("Post %s is missing or closed; nothing to moderate", cmd.target_id)
        return None
    return post


def _live_comment(db: Session, cmd: ModerationCommand) -> Comment | None:
    comment = db.get(Comment, cmd.target_id)
    if comment is None or comment.status in TERMINAL_COMMENT_STATUSES:
        logger.debug("Comment %s is missing or closed; nothing to moderate", cmd.target_id)
        return None
    return comment


def _reporter_notices(
    content_type: str, content_id: str, reporters: Iterable[UUID], content: str, type_: NotificationType
) -> list[Effect]:
    return [
        Notify(user_id=reporter_id, type=type_, content=content, object_type=content_type, object_id=content_id)
        for reporter_id in reporters
    ]


def _close_reports(ctx: ActionContext, content_type: str, content_id: str, *, notice: str, type_: NotificationType) -> list[Effect]:
    """Notify every reporter of the item once, then drop its reports."""

    reporters = unique_reporters(linked_reports(ctx.db, content_type, content_id))
    delete_linked_reports(ctx.db, content_type, content_id)
    return _reporter_notices(content_type, content_id, reporters, notice, type_)


def approve_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    if cmd.target_type is TargetType.POST:
        return _approve_post_content(ctx, cmd)
    return _approve_comment_content(ctx, cmd)


def _approve_post_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    post = _open_post(ctx.db, cmd)
    if post is None:
        return []

    decision = ctx.new_decision(TargetType.POST, post.id, APPROVED, cmd.reason)
    apply_post_decision(post, APPROVED, now=ctx.now)
    post_id = str(post.id)

    effects: list[Effect] = [
        decision,
        Notify(
            user_id=post.author_id,
            type=NotificationType.MODERATION_APPROVED,
            content="Your post was approved and is now visible to everyone.",
            object_type="post",
            object_id=post_id,
        ),
        SendEmail(
            user_id=post.author_id,
            template="moderation_approved",
            template_args={"post_title": post.title, "post_slug": post.slug},
        ),
    ]
    effects += _close_reports(
        ctx, "post", post_id, notice=_NO_VIOLATION_NOTICE, type_=NotificationType.REPORT_NO_VIOLATION
    )
    effects.append(CascadeDuplicates(TargetType.POST, post.id, APPROVED, cmd.reason, decision.decision_id))
    return effects


def _approve_comment_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    comment = _live_comment(ctx.db, cmd)
    if comment is None:
        return []

    decision = ctx.new_decision(TargetType.COMMENT, comment.id, APPROVED, cmd.reason)
    apply_comment_decision(comment, APPROVED)
    refresh_comment_count(ctx.db, comment.post_id)
    comment_id = str(comment.id)

    effects: list[Effect] = [
        decision,
        Notify(
            user_id=comment.author_id,
            type=NotificationType.MODERATION_APPROVED,
            content="Your comment was approved and is now visible.",
            object_type="comment",
            object_id=comment_id,
        ),
    ]
    effects += _close_reports(
        ctx, "comment", comment_id, notice=_NO_VIOLATION_NOTICE, type_=NotificationType.REPORT_NO_VIOLATION
    )
    effects.append(CascadeDuplicates(TargetType.COMMENT, comment.id, APPROVED, cmd.reason, decision.decision_id))
    return effects


def reject_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    if cmd.target_type is TargetType.POST:
        return _reject_post_content(ctx, cmd)
    return _reject_comment_content(ctx, cmd)


def _reject_post_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    post = _open_post(ctx.db, cmd)
    if post is None:
        return []

    decision = ctx.new_decision(TargetType.POST, post.id, REMOVED, cmd.reason)
    apply_post_decision(post, REMOVED, now=ctx.now, reason=cmd.reason, decision_id=decision.decision_id)
    post_id = str(post.id)

    # Reports stay on file as resolved so the removal can be traced back to them.
    pending = linked_reports(ctx.db, "post", post_id, pending_only=True)
    for report in pending:
        report.status = "resolved"
        report.moderator_id = ctx.actor.id
        report.moderator_note = cmd.reason
        report.resolved_at = ctx.now

    effects: list[Effect] = [
        decision,
        Notify(
            user_id=post.author_id,
            type=NotificationType.MODERATION_REJECTED,
            content=(
                f"Your post was removed. Decision No: #{decision.decision_code}. "
                f"Reason: {cmd.reason or 'Not specified'}"
            ),
            object_type="post",
            object_id=post_id,
        ),
        SendEmail(
            user_id=post.author_id,
            template="moderation_rejected",
            template_args={
                "post_title": post.title,
                "reason": cmd.reason,
                "decision_code": decision.decision_code,
            },
        ),
    ]
    effects += _reporter_notices(
        "post", post_id, unique_reporters(pending), _ACTION_TAKEN_NOTICE, NotificationType.REPORT_ACTION_TAKEN
    )
    effects.append(CascadeDuplicates(TargetType.POST, post.id, REMOVED, cmd.reason, decision.decision_id))
    return effects


def _reject_comment_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    comment = _live_comment(ctx.db, cmd)
    if comment is None:
        return []

    decision = ctx.new_decision(TargetType.COMMENT, comment.id, REMOVED, cmd.reason)
    apply_comment_decision(comment, REMOVED)
    refresh_comment_count(ctx.db, comment.post_id)
    comment_id = str(comment.id)

    effects: list[Effect] = [
        decision,
        Notify(
            user_id=comment.author_id,
            type=NotificationType.MODERATION_REJECTED,
            content=(
                f"Your comment was removed. Decision No: #{decision.decision_code}. "
                f"Reason: {cmd.reason or 'Not specified'}"
            ),
            object_type="comment",
            object_id=comment_id,
        ),
    ]
    effects += _close_reports(
        ctx, "comment", comment_id, notice=_ACTION_TAKEN_NOTICE, type_=NotificationType.REPORT_ACTION_TAKEN
    )
    effects.append(CascadeDuplicates(TargetType.COMMENT, comment.id, REMOVED, cmd.reason, decision.decision_id))
    return effects


def dismiss_content(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    """Clear obvious spam without a formal decision; the audit log still records it."""

    if cmd.target_type is TargetType.POST:
        post = _open_post(ctx.db, cmd)
        if post is None:
            return []
        apply_post_decision(post, DISMISSED, now=ctx.now, reason=cmd.reason)
        delete_linked_reports(ctx.db, "post", post.id)
        return [CascadeDuplicates(TargetType.POST, post.id, DISMISSED, cmd.reason)]

    if cmd.target_type is TargetType.COMMENT:
        comment = _live_comment(ctx.db, cmd)
        if comment is None:
            return []
        apply_comment_decision(comment, DISMISSED)
        refresh_comment_count(ctx.db, comment.post_id)
        delete_linked_reports(ctx.db, "comment", comment.id)
        return [CascadeDuplicates(TargetType.COMMENT, comment.id, DISMISSED, cmd.reason)]

    return deactivate_account(ctx, cmd)


def _set_post_status(ctx: ActionContext, cmd: ModerationCommand, new_status: str) -> list[Effect]:
    post = _open_post(ctx.db, cmd)
    if post is None:
        return []
    post.status = new_status
    if new_status == "removed":
        post.removed_at = ctx.now
        post.removal_reason = cmd.reason
    return []


def approve_post(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _set_post_status(ctx, cmd, "published")


def remove_post(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _set_post_status(ctx, cmd, "removed")


def archive_post(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _set_post_status(ctx, cmd, "archived")


def _set_comment_status(ctx: ActionContext, cmd: ModerationCommand, new_status: str) -> list[Effect]:
    comment = _live_comment(ctx.db, cmd)
    if comment is None:
        return []
    comment.status = new_status
    refresh_comment_count(ctx.db, comment.post_id)
    return []


def approve_comment(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _set_comment_status(ctx, cmd, "approved")


def remove_comment(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _set_comment_status(ctx, cmd, "removed")


__all__ = [
    "approve_comment",
    "approve_content",
    "approve_post",
    "archive_post",
    "dismiss_content",
    "reject_content",
    "remove_comment",
    "remove_post",
]
