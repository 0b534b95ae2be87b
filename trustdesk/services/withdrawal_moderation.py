"""Moderation handlers for coin withdrawal requests."""
from __future__ import annotations

import logging

from sqlalchemy import select

from ..models import CoinTransaction, User, WithdrawalRequest
from .effects import Effect, Notify, SendEmail
from .moderation_context import ActionContext, ModerationCommand, TargetType
from .notification_service import NotificationType

logger = logging.getLogger(__name__)

_REJECTABLE_STATUSES = ("pending", "processing")


def _locked_withdrawal(ctx: ActionContext, cmd: ModerationCommand) -> WithdrawalRequest | None:
    stmt = select(WithdrawalRequest).where(WithdrawalRequest.id == cmd.target_id).with_for_update()
    return ctx.db.scalars(stmt).first()


def approve_withdrawal(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    withdrawal = _locked_withdrawal(ctx, cmd)
    if withdrawal is None or withdrawal.status != "pending":
        return []

    withdrawal.status = "completed"
    withdrawal.reviewed_by = ctx.actor.id
    withdrawal.reviewed_at = ctx.now
    withdrawal.completed_at = ctx.now
    decision = ctx.new_decision(TargetType.WITHDRAWAL, withdrawal.id, "approved", cmd.reason)
    return [
        decision,
        Notify(
            user_id=withdrawal.user_id,
            type=NotificationType.WITHDRAWAL_COMPLETED,
            content=f"Your withdrawal of {withdrawal.amount} coins was completed.",
            object_type="withdrawal",
            object_id=str(withdrawal.id),
        ),
        SendEmail(
            user_id=withdrawal.user_id,
            template="withdrawal_status",
            template_args={"status": "completed", "amount": withdrawal.amount},
        ),
    ]


def reject_withdrawal(ctx: ActionContext, cmd: ModerationCommand) -> list[Effect]:
    """Reject the request and put the coins back in the requester's wallet.

    The refund and its ledger entry commit with the status change; both rows
    are locked first so a concurrent balance change cannot be lost.
    """

    withdrawal = _locked_withdrawal(ctx, cmd)
    if withdrawal is None or withdrawal.status not in _REJECTABLE_STATUSES:
        return []

    owner = ctx.db.scalars(select(User).where(User.id == withdrawal.user_id).with_for_update()).first()
    if owner is None:
        logger.warning("Withdrawal %s has no owner account; leaving it untouched", withdrawal.id)
        return []

    amount = int(withdrawal.amount)
    withdrawal.status = "rejected"
    withdrawal.reviewed_by = ctx.actor.id
    withdrawal.reviewed_at = ctx.now
    withdrawal.rejection_reason = cmd.reason

    owner.coin_balance = int(owner.coin_balance or 0) + amount
    ctx.db.add(
        CoinTransaction(
            user_id=owner.id,
            type="refund",
            amount=amount,
            balance_after=owner.coin_balance,
            description=f"Withdrawal {withdrawal.id} rejected",
        )
    )

    decision = ctx.new_decision(TargetType.WITHDRAWAL, withdrawal.id, "rejected", cmd.reason)
    return [
        decision,
        Notify(
            user_id=owner.id,
            type=NotificationType.WITHDRAWAL_REJECTED,
            content=(
                f"Your withdrawal of {amount} coins was rejected and the coins were returned to your wallet. "
                f"Reason: {cmd.reason or 'Not specified'}"
            ),
            object_type="withdrawal",
            object_id=str(withdrawal.id),
        ),
        SendEmail(
            user_id=owner.id,
            template="withdrawal_status",
            template_args={"status": "rejected", "amount": amount, "reason": cmd.reason},
        ),
    ]


__all__ = ["approve_withdrawal", "reject_withdrawal"]
