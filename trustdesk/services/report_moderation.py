"""Moderation handlers for user reports."""
from __future__ import annotations

from ..models import Report
from .effects import Effect
from .moderation_context import ActionContext, ModerationCommand, TargetType


def _close_report(ctx: ActionContext, cmd: ModerationCommand, new_status: str) -> list[Effect]:
    report = ctx.db.get(Report, cmd.target_id)
    if report is None or report.status != "pending":
        return []

    report.status = new_status
    report.moderator_id = ctx.actor.id
    report.moderator_note = cmd.reason
    report.resolved_at = ctx.now
    return [ctx.new_decision(TargetType.REPORT, report.id, new_status, cmd.reason)]


def resolve_report(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _close_report(ctx, cmd, "resolved")


def dismiss_report(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    return _close_report(ctx, cmd, "dismissed")


__all__ = ["dismiss_report", "resolve_report"]
