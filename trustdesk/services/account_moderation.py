"""Moderation handlers that act on user accounts."""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import update

from ..config import get_settings
from ..constants import MAX_SPAM_SCORE, WARN_SPAM_SCORE_STEP
from ..models import Post, User
from .effects import CheckEscalation, Effect, Notify, SendEmail
from .escalation import BLOCKED, clear_ban_history
from .moderation_context import ActionContext, ModerationAction, ModerationCommand, TargetType
from .notification_service import NotificationType

logger = logging.getLogger(__name__)

_RESTRICTION_FLAGS = {
    ModerationAction.RESTRICT_FOLLOW: ("follow", "restricted_follow"),
    ModerationAction.RESTRICT_LIKE: ("like", "restricted_like"),
    ModerationAction.RESTRICT_COMMENT: ("comment", "restricted_comment"),
}


def _load_account(ctx: ActionContext, cmd: ModerationCommand) -> User | None:
    """Return the target account, or ``None`` when it is gone or already deleted."""

    user = ctx.db.get(User, cmd.target_id)
    if user is None or user.status == "deleted":
        return None
    return user


def _notice(user: User, type_: NotificationType, content: str) -> Notify:
    return Notify(user_id=user.id, type=type_, content=content, object_type="user", object_id=str(user.id))


def _with_reason(message: str, reason: str | None) -> str:
    return f"{message} Reason: {reason}" if reason else message


def warn_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.spam_score = min(MAX_SPAM_SCORE, (user.spam_score or 0) + WARN_SPAM_SCORE_STEP)
    decision = ctx.new_decision(TargetType.USER, user.id, "warned", cmd.reason)
    return [
        decision,
        _notice(
            user,
            NotificationType.ACCOUNT_WARNED,
            _with_reason(f"Your account received a warning. Decision No: #{decision.decision_code}.", cmd.reason),
        ),
    ]


def ban_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.status = "blocked"
    user.spam_score = MAX_SPAM_SCORE
    user.moderation_reason = cmd.reason
    decision = ctx.new_decision(TargetType.USER, user.id, BLOCKED, cmd.reason)
    return [
        decision,
        _notice(
            user,
            NotificationType.ACCOUNT_BLOCKED,
            _with_reason(f"Your account has been blocked. Decision No: #{decision.decision_code}.", cmd.reason),
        ),
        CheckEscalation(user_id=user.id, moderator_id=str(ctx.actor.id)),
    ]


def _restore_account(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.status = "active"
    user.spam_score = 0
    user.moderation_reason = None
    user.frozen_at = None
    clear_ban_history(ctx.db, user.id, ctx.now)
    return [_notice(user, NotificationType.ACCOUNT_RESTORED, "Your account has been restored.")]


def unban_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _restore_account(ctx, cmd)


def activate_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _restore_account(ctx, cmd)


def unfreeze_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _restore_account(ctx, cmd)


def freeze_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.status = "frozen"
    user.frozen_at = ctx.now
    user.moderation_reason = cmd.reason
    decision = ctx.new_decision(TargetType.USER, user.id, "frozen", cmd.reason)
    return [
        decision,
        _notice(
            user,
            NotificationType.ACCOUNT_FROZEN,
            _with_reason(f"Your account has been frozen. Decision No: #{decision.decision_code}.", cmd.reason),
        ),
    ]


def deactivate_account(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    """Freeze a spam account without writing a decision."""

    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.status = "frozen"
    user.frozen_at = ctx.now
    user.moderation_reason = cmd.reason
    return []


def delete_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    # Soft delete; the row and its content stay for the audit trail.
    user.status = "deleted"
    user.moderation_reason = cmd.reason
    decision = ctx.new_decision(TargetType.USER, user.id, "deleted", cmd.reason)
    return [
        decision,
        _notice(
            user,
            NotificationType.ACCOUNT_DELETED,
            _with_reason(f"Your account has been closed. Decision No: #{decision.decision_code}.", cmd.reason),
        ),
    ]


def moderation_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.status = "moderation"
    user.moderation_reason = cmd.reason
    decision = ctx.new_decision(TargetType.USER, user.id, "moderation", cmd.reason)
    return [
        decision,
        _notice(
            user,
            NotificationType.ACCOUNT_MODERATION,
            f"Your account is under review. Decision No: #{decision.decision_code}.",
        ),
        SendEmail(user_id=user.id, template="account_moderation", template_args={"username": user.username}),
    ]


def verify_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is not None:
        user.is_verified = True
    return []


def unverify_user(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is not None:
        user.is_verified = False
    return []


def grant_premium(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    # The plan has already been validated against PREMIUM_PLANS by the dispatcher.
    plan = str(cmd.extra["plan"]).lower()
    user.is_premium = True
    user.premium_plan = plan
    user.premium_until = ctx.now + timedelta(days=get_settings().premium_duration_days)
    return [
        _notice(
            user,
            NotificationType.PREMIUM_GRANTED,
            f"You have been granted the {plan.capitalize()} plan.",
        )
    ]


def revoke_premium(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None or not user.is_premium:
        return []

    user.is_premium = False
    user.premium_plan = None
    user.premium_until = None
    return [_notice(user, NotificationType.PREMIUM_REVOKED, "Your premium membership has ended.")]


def shadow_ban(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is not None:
        user.shadow_banned = True
        user.shadow_banned_at = ctx.now
        user.shadow_banned_by = ctx.actor.id
    return []


def unshadow_ban(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is not None:
        user.shadow_banned = False
        user.shadow_banned_at = None
        user.shadow_banned_by = None
    return []


def toggle_restriction(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    """Flip one of the follow/like/comment restrictions and record which way it went."""

    user = _load_account(ctx, cmd)
    if user is None:
        return []

    kind, attr = _RESTRICTION_FLAGS[cmd.action]
    restricted = not bool(getattr(user, attr))
    setattr(user, attr, restricted)

    verb = "restrict" if restricted else "unrestrict"
    decision = ctx.new_decision(TargetType.USER, user.id, f"{verb}_{kind}", cmd.reason)
    if restricted:
        message = f"You can no longer {kind} on the platform for now. Decision No: #{decision.decision_code}."
    else:
        message = f"Your {kind} restriction has been lifted."
    return [decision, _notice(user, NotificationType.ACCOUNT_RESTRICTED, _with_reason(message, cmd.reason))]


def revoke_copyright(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    user = _load_account(ctx, cmd)
    if user is None:
        return []

    user.copyright_eligible = False
    result = ctx.db.execute(
        update(Post)
        .where(Post.author_id == user.id, Post.copyright_protected.is_(True))
        .values(copyright_protected=False)
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Revoked copyright protection on %s posts of user %s", result.rowcount, user.id)
    return [
        _notice(
            user,
            NotificationType.COPYRIGHT_REVOKED,
            _with_reason("Your copyright protection has been revoked.", cmd.reason),
        )
    ]


__all__ = [
    "activate_user",
    "ban_user",
    "deactivate_account",
    "delete_user",
    "freeze_user",
    "grant_premium",
    "moderation_user",
    "revoke_copyright",
    "revoke_premium",
    "shadow_ban",
    "toggle_restriction",
    "unban_user",
    "unfreeze_user",
    "unshadow_ban",
    "unverify_user",
    "verify_user",
    "warn_user",
]
