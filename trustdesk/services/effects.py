"""Typed side effects produced by moderation handlers.

Handlers never talk to the notification or email sinks directly. They return
a list of effects; the dispatcher writes the transactional ones
(:class:`RecordDecision`, :class:`CascadeDuplicates`, :class:`CheckEscalation`)
together with the target mutation and hands the outbound ones
(:class:`Notify`, :class:`SendEmail`) to :func:`deliver_effects` once the
transaction has committed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Union
from uuid import UUID

from sqlalchemy.orm import Session

from ..models import ModerationDecision
from .email_service import send_template_email
from .notification_service import NotificationType, create_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordDecision:
    decision_id: UUID
    target_type: str
    target_id: str
    decision: str
    reason: str | None
    moderator_id: str
    decision_code: str


@dataclass(frozen=True, slots=True)
class CascadeDuplicates:
    target_type: str
    item_id: UUID
    decision: str
    reason: str | None = None
    decision_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class CheckEscalation:
    user_id: UUID
    moderator_id: str


@dataclass(frozen=True, slots=True)
class Notify:
    user_id: UUID
    type: NotificationType
    content: str
    object_type: str | None = None
    object_id: str | None = None


@dataclass(frozen=True, slots=True)
class SendEmail:
    user_id: UUID
    template: str
    template_args: dict[str, Any] = field(default_factory=dict)


Effect = Union[RecordDecision, CascadeDuplicates, CheckEscalation, Notify, SendEmail]

OUTBOUND_EFFECTS = (Notify, SendEmail)


def record_decision(db: Session, effect: RecordDecision) -> ModerationDecision:
    """Stage the decision row inside the caller's transaction."""

    decision = ModerationDecision(
        id=effect.decision_id,
        target_type=effect.target_type,
        target_id=effect.target_id,
        decision=effect.decision,
        reason=effect.reason,
        moderator_id=effect.moderator_id,
        decision_code=effect.decision_code,
    )
    db.add(decision)
    return decision


def deliver_effects(db: Session, effects: Iterable[Effect]) -> int:
    """Send notifications and emails; failures are logged and never raised.

    Returns the number of effects that were delivered.
    """

    delivered = 0
    for effect in effects:
        try:
            if isinstance(effect, Notify):
                create_notification(
                    db,
                    user_id=effect.user_id,
                    type_=effect.type,
                    content=effect.content,
                    object_type=effect.object_type,
                    object_id=effect.object_id,
                )
            elif isinstance(effect, SendEmail):
                if not send_template_email(
                    db,
                    user_id=effect.user_id,
                    template=effect.template,
                    template_args=effect.template_args,
                ):
                    continue
            else:
                logger.error("Effect %r cannot be delivered after commit", effect)
                continue
        except Exception:
            db.rollback()
            logger.warning("Failed to deliver %s to user %s", type(effect).__name__, effect.user_id, exc_info=True)
            continue
        delivered += 1
    return delivered


__all__ = [
    "CascadeDuplicates",
    "CheckEscalation",
    "Effect",
    "Notify",
    "OUTBOUND_EFFECTS",
    "RecordDecision",
    "SendEmail",
    "deliver_effects",
    "record_decision",
]
