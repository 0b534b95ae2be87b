"""Rolling-window ban escalation.

Strikes are recomputed from the decision history on every ban instead of being
kept as a counter on the account, so purging decisions is enough to forgive a
user.
"""
from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..constants import ESCALATION_BAN_THRESHOLD, ESCALATION_REASON, ESCALATION_WINDOW
from ..models import ModerationDecision, User
from .effects import CheckEscalation, Notify, record_decision
from .moderation_context import ActionContext, TargetType
from .notification_service import NotificationType

logger = logging.getLogger(__name__)

BLOCKED = "blocked"


def _recent_bans(user_id: UUID, now: datetime):
    return (
        ModerationDecision.target_type == TargetType.USER.value,
        ModerationDecision.target_id == str(user_id),
        ModerationDecision.decision == BLOCKED,
        ModerationDecision.created_at >= now - ESCALATION_WINDOW,
    )


def count_recent_bans(db: Session, user_id: UUID, now: datetime) -> int:
    return int(db.scalar(select(func.count(ModerationDecision.id)).where(*_recent_bans(user_id, now))) or 0)


def check_escalation(ctx: ActionContext, effect: CheckEscalation) -> list[Notify]:
    """Delete the account once it has collected enough bans inside the window.

    The synthetic ``deleted`` decision is attributed to the moderator whose ban
    crossed the threshold. Returns the notifications to deliver after commit.
    """

    db = ctx.db
    strikes = count_recent_bans(db, effect.user_id, ctx.now)
    if strikes < ESCALATION_BAN_THRESHOLD:
        return []

    user = db.get(User, effect.user_id)
    if user is None or user.status == "deleted":
        return []

    user.status = "deleted"
    user.moderation_reason = ESCALATION_REASON
    decision = ctx.new_decision(
        TargetType.USER,
        user.id,
        "deleted",
        ESCALATION_REASON,
        moderator_id=effect.moderator_id,
    )
    record_decision(db, decision)
    db.flush()
    logger.info("Account %s deleted after %s bans within %s", user.id, strikes, ESCALATION_WINDOW)

    return [
        Notify(
            user_id=user.id,
            type=NotificationType.ACCOUNT_DELETED,
            content=(
                "Your account was closed after repeated violations of our guidelines. "
                f"Decision No: #{decision.decision_code}"
            ),
            object_type="user",
            object_id=str(user.id),
        )
    ]


def clear_ban_history(db: Session, user_id: UUID, now: datetime) -> int:
    """Forget the user's strikes inside the trailing window; returns how many were removed."""

    result = db.execute(
        delete(ModerationDecision)
        .where(*_recent_bans(user_id, now))
        .execution_options(synchronize_session="fetch")
    )
    removed = int(result.rowcount or 0)
    if removed:
        logger.info("Cleared %s recent ban decisions for user %s", removed, user_id)
    return removed


__all__ = ["BLOCKED", "check_escalation", "clear_ban_history", "count_recent_bans"]
