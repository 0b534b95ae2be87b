"""Project-wide constant values."""
from __future__ import annotations

from datetime import timedelta

# Rolling window and strike count that turn repeated bans into account deletion.
ESCALATION_WINDOW = timedelta(days=30)
ESCALATION_BAN_THRESHOLD = 4
ESCALATION_REASON = "auto_escalation: repeated bans within 30 days"

DECISION_CODE_ATTEMPTS = 5
DECISION_CODE_LENGTH = 6

WARN_SPAM_SCORE_STEP = 20
MAX_SPAM_SCORE = 100

PREMIUM_PLANS = frozenset({"super", "pro", "max", "business"})

__all__ = [
    "ESCALATION_WINDOW",
    "ESCALATION_BAN_THRESHOLD",
    "ESCALATION_REASON",
    "DECISION_CODE_ATTEMPTS",
    "DECISION_CODE_LENGTH",
    "WARN_SPAM_SCORE_STEP",
    "MAX_SPAM_SCORE",
    "PREMIUM_PLANS",
]
