"""Convenience exports for ORM models."""
from .moderation import ModerationDecision, ModerationLog
from .notification import EmailLog, Notification
from .post import Comment, Post
from .report import Report
from .user import User
from .wallet import CoinTransaction, WithdrawalRequest

__all__ = [
    "CoinTransaction",
    "Comment",
    "EmailLog",
    "ModerationDecision",
    "ModerationLog",
    "Notification",
    "Post",
    "Report",
    "User",
    "WithdrawalRequest",
]
