"""Value types shared by the moderation dispatcher and its handlers."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from .decision_codes import generate_decision_code
from .effects import Effect, RecordDecision


class TargetType(StrEnum):
    POST = "post"
    COMMENT = "comment"
    USER = "user"
    REPORT = "report"
    WITHDRAWAL = "withdrawal"


class ModerationAction(StrEnum):
    APPROVE_CONTENT = "approve_content"
    REJECT_CONTENT = "reject_content"
    DISMISS_CONTENT = "dismiss_content"
    APPROVE_POST = "approve_post"
    REMOVE_POST = "remove_post"
    ARCHIVE_POST = "archive_post"
    APPROVE_COMMENT = "approve_comment"
    REMOVE_COMMENT = "remove_comment"
    WARN_USER = "warn_user"
    BAN_USER = "ban_user"
    UNBAN_USER = "unban_user"
    ACTIVATE_USER = "activate_user"
    FREEZE_USER = "freeze_user"
    UNFREEZE_USER = "unfreeze_user"
    DELETE_USER = "delete_user"
    MODERATION_USER = "moderation_user"
    VERIFY_USER = "verify_user"
    UNVERIFY_USER = "unverify_user"
    GRANT_PREMIUM = "grant_premium"
    REVOKE_PREMIUM = "revoke_premium"
    SHADOW_BAN = "shadow_ban"
    UNSHADOW_BAN = "unshadow_ban"
    RESTRICT_FOLLOW = "restrict_follow"
    RESTRICT_LIKE = "restrict_like"
    RESTRICT_COMMENT = "restrict_comment"
    REVOKE_COPYRIGHT = "revoke_copyright"
    RESOLVE_REPORT = "resolve_report"
    DISMISS_REPORT = "dismiss_report"
    APPROVE_WITHDRAWAL = "approve_withdrawal"
    REJECT_WITHDRAWAL = "reject_withdrawal"


@dataclass(frozen=True, slots=True)
class Actor:
    """The authenticated staff member issuing a command."""

    id: UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True, slots=True)
class ModerationCommand:
    action: ModerationAction
    target_type: TargetType
    target_id: UUID
    reason: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ActionContext:
    db: Session
    actor: Actor
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def new_decision(
        self,
        target_type: TargetType | str,
        target_id: UUID | str,
        decision: str,
        reason: str | None,
        *,
        moderator_id: str | None = None,
    ) -> RecordDecision:
        """Build a decision effect with a fresh id and display code."""

        return RecordDecision(
            decision_id=uuid.uuid4(),
            target_type=str(target_type),
            target_id=str(target_id),
            decision=decision,
            reason=reason,
            moderator_id=moderator_id or str(self.actor.id),
            decision_code=generate_decision_code(self.db),
        )


@dataclass(frozen=True, slots=True)
class ModerationActionResult:
    success: bool
    action: str
    message: str


Handler = Callable[[ActionContext, ModerationCommand], list[Effect]]

__all__ = [
    "ActionContext",
    "Actor",
    "Handler",
    "ModerationAction",
    "ModerationActionResult",
    "ModerationCommand",
    "TargetType",
]
