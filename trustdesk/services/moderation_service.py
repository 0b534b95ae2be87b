"""Dispatcher for moderation commands.

``perform_action`` is the single write entry point: it gates the caller,
validates the command, writes the audit entry, runs the registered handler and
applies the handler's effects. The target mutation, decision rows, duplicate
cascade and escalation commit together; notifications and emails go out once
that transaction is durable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import PREMIUM_PLANS
from ..models import ModerationDecision, ModerationLog
from . import account_moderation as accounts
from . import content_moderation as content
from . import report_moderation as reports
from . import withdrawal_moderation as withdrawals
from .authorization import authorize, require_staff
from .duplicate_cascade import resolve_duplicates
from .effects import (
    OUTBOUND_EFFECTS,
    CascadeDuplicates,
    CheckEscalation,
    Effect,
    RecordDecision,
    deliver_effects,
    record_decision,
)
from .escalation import check_escalation
from .moderation_context import (
    ActionContext,
    Actor,
    Handler,
    ModerationAction,
    ModerationActionResult,
    ModerationCommand,
    TargetType,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ActionSpec:
    handler: Handler
    target_types: frozenset[TargetType]


def _spec(handler: Handler, *target_types: TargetType) -> ActionSpec:
    return ActionSpec(handler=handler, target_types=frozenset(target_types))


_POST, _COMMENT, _USER = TargetType.POST, TargetType.COMMENT, TargetType.USER

ACTION_REGISTRY: dict[ModerationAction, ActionSpec] = {
    ModerationAction.APPROVE_CONTENT: _spec(content.approve_content, _POST, _COMMENT),
    ModerationAction.REJECT_CONTENT: _spec(content.reject_content, _POST, _COMMENT),
    ModerationAction.DISMISS_CONTENT: _spec(content.dismiss_content, _POST, _COMMENT, _USER),
    ModerationAction.APPROVE_POST: _spec(content.approve_post, _POST),
    ModerationAction.REMOVE_POST: _spec(content.remove_post, _POST),
    ModerationAction.ARCHIVE_POST: _spec(content.archive_post, _POST),
    ModerationAction.APPROVE_COMMENT: _spec(content.approve_comment, _COMMENT),
    ModerationAction.REMOVE_COMMENT: _spec(content.remove_comment, _COMMENT),
    ModerationAction.WARN_USER: _spec(accounts.warn_user, _USER),
    ModerationAction.BAN_USER: _spec(accounts.ban_user, _USER),
    ModerationAction.UNBAN_USER: _spec(accounts.unban_user, _USER),
    ModerationAction.ACTIVATE_USER: _spec(accounts.activate_user, _USER),
    ModerationAction.FREEZE_USER: _spec(accounts.freeze_user, _USER),
    ModerationAction.UNFREEZE_USER: _spec(accounts.unfreeze_user, _USER),
    ModerationAction.DELETE_USER: _spec(accounts.delete_user, _USER),
    ModerationAction.MODERATION_USER: _spec(accounts.moderation_user, _USER),
    ModerationAction.VERIFY_USER: _spec(accounts.verify_user, _USER),
    ModerationAction.UNVERIFY_USER: _spec(accounts.unverify_user, _USER),
    ModerationAction.GRANT_PREMIUM: _spec(accounts.grant_premium, _USER),
    ModerationAction.REVOKE_PREMIUM: _spec(accounts.revoke_premium, _USER),
    ModerationAction.SHADOW_BAN: _spec(accounts.shadow_ban, _USER),
    ModerationAction.UNSHADOW_BAN: _spec(accounts.unshadow_ban, _USER),
    ModerationAction.RESTRICT_FOLLOW: _spec(accounts.toggle_restriction, _USER),
    ModerationAction.RESTRICT_LIKE: _spec(accounts.toggle_restriction, _USER),
    ModerationAction.RESTRICT_COMMENT: _spec(accounts.toggle_restriction, _USER),
    ModerationAction.REVOKE_COPYRIGHT: _spec(accounts.revoke_copyright, _USER),
    ModerationAction.RESOLVE_REPORT: _spec(reports.resolve_report, TargetType.REPORT),
    ModerationAction.DISMISS_REPORT: _spec(reports.dismiss_report, TargetType.REPORT),
    ModerationAction.APPROVE_WITHDRAWAL: _spec(withdrawals.approve_withdrawal, TargetType.WITHDRAWAL),
    ModerationAction.REJECT_WITHDRAWAL: _spec(withdrawals.reject_withdrawal, TargetType.WITHDRAWAL),
}

_unregistered = set(ModerationAction) - set(ACTION_REGISTRY)
if _unregistered:
    raise RuntimeError(f"Moderation actions without a handler: {sorted(_unregistered)}")


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def parse_command(
    *,
    action: str | None,
    target_type: str | None,
    target_id: str | UUID | None,
    reason: str | None = None,
    extra: dict[str, Any] | None = None,
) -> ModerationCommand:
    """Validate raw request fields into a :class:`ModerationCommand` (400 on failure)."""

    if not action:
        raise _bad_request("Missing action")
    try:
        verb = ModerationAction(action.strip().lower())
    except ValueError as exc:
        raise _bad_request(f"Unknown action: {action}") from exc

    spec = ACTION_REGISTRY[verb]
    try:
        kind = TargetType((target_type or "").strip().lower())
    except ValueError as exc:
        raise _bad_request(f"Invalid target type for {verb}") from exc
    if kind not in spec.target_types:
        raise _bad_request(f"Invalid target type for {verb}")

    if target_id is None:
        raise _bad_request("Missing target id")
    try:
        item_id = target_id if isinstance(target_id, UUID) else UUID(str(target_id).strip())
    except ValueError as exc:
        raise _bad_request("Invalid target id") from exc

    payload = dict(extra or {})
    if verb is ModerationAction.GRANT_PREMIUM:
        plan = str(payload.get("plan") or "").strip().lower()
        if plan not in PREMIUM_PLANS:
            raise _bad_request(f"Invalid premium plan; expected one of {', '.join(sorted(PREMIUM_PLANS))}")
        payload["plan"] = plan

    clean_reason = reason.strip() if reason else None
    return ModerationCommand(
        action=verb,
        target_type=kind,
        target_id=item_id,
        reason=clean_reason or None,
        extra=payload,
    )


def _write_audit_log(db: Session, actor: Actor, cmd: ModerationCommand) -> None:
    entry = ModerationLog(
        moderator_id=str(actor.id),
        action=cmd.action.value,
        target_type=cmd.target_type.value,
        target_id=str(cmd.target_id),
        reason=cmd.reason,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Failed to write audit entry for %s on %s %s", cmd.action, cmd.target_type, cmd.target_id)


def _run_isolated(db: Session, label: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T | None:
    """Run ``fn`` inside a SAVEPOINT so its failure leaves the primary mutation intact."""

    try:
        with db.begin_nested():
            return fn(*args, **kwargs)
    except Exception:
        logger.warning("%s failed; keeping the primary decision", label, exc_info=True)
        return None


def _apply_effects(ctx: ActionContext, effects: Iterable[Effect]) -> list[Effect]:
    """Write the transactional effects and return the ones to deliver after commit."""

    db = ctx.db
    effects = list(effects)
    for effect in effects:
        if isinstance(effect, RecordDecision):
            record_decision(db, effect)
    db.flush()

    outbound = [effect for effect in effects if isinstance(effect, OUTBOUND_EFFECTS)]
    for effect in effects:
        if isinstance(effect, CascadeDuplicates):
            _run_isolated(db, "Duplicate cascade", resolve_duplicates, db, effect, now=ctx.now)
        elif isinstance(effect, CheckEscalation):
            notices = _run_isolated(db, "Escalation check", check_escalation, ctx, effect)
            outbound.extend(notices or [])
    return outbound


def perform_action(
    db: Session,
    actor: Actor | None,
    *,
    action: str | None,
    target_type: str | None,
    target_id: str | UUID | None,
    reason: str | None = None,
    extra: dict[str, Any] | None = None,
) -> ModerationActionResult:
    """Apply one moderation command on behalf of ``actor``.

    Raises ``HTTPException`` with 401/403 for callers that may not run the
    command, 400 for malformed commands and 500 when the handler fails. A
    missing target or one already in a final state is not an error: nothing
    changes and the result still reports success.
    """

    staff = require_staff(db, actor)
    cmd = parse_command(action=action, target_type=target_type, target_id=target_id, reason=reason, extra=extra)
    staff = authorize(db, staff, cmd.action, cmd.target_type, cmd.target_id)

    _write_audit_log(db, staff, cmd)

    ctx = ActionContext(db=db, actor=staff)
    handler = ACTION_REGISTRY[cmd.action].handler
    try:
        outbound = _apply_effects(ctx, handler(ctx, cmd))
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("Moderation action %s on %s %s failed", cmd.action, cmd.target_type, cmd.target_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Moderation action failed",
        ) from exc

    logger.info("%s applied %s to %s %s", staff.id, cmd.action, cmd.target_type, cmd.target_id)
    deliver_effects(db, outbound)
    return ModerationActionResult(success=True, action=cmd.action.value, message=f"{cmd.action.value} completed")


def get_decision_by_code(db: Session, actor: Actor | None, decision_code: str) -> ModerationDecision:
    """Look up the decision a user quotes back to support; newest first on a shared code."""

    require_staff(db, actor)
    code = (decision_code or "").strip().lstrip("#")
    decision = db.scalars(
        select(ModerationDecision)
        .where(ModerationDecision.decision_code == code)
        .order_by(ModerationDecision.created_at.desc())
    ).first()
    if decision is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Decision not found")
    return decision


__all__ = [
    "ACTION_REGISTRY",
    "ActionSpec",
    "get_decision_by_code",
    "parse_command",
    "perform_action",
]
