"""Short numeric codes users quote when appealing a moderation decision."""
from __future__ import annotations

import logging
import secrets
import time

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import DECISION_CODE_ATTEMPTS, DECISION_CODE_LENGTH
from ..models import ModerationDecision

logger = logging.getLogger(__name__)

_LOWEST_CODE = 10 ** (DECISION_CODE_LENGTH - 1)
_CODE_SPAN = 9 * _LOWEST_CODE


def _random_code() -> str:
    return str(_LOWEST_CODE + secrets.randbelow(_CODE_SPAN))


def _fallback_code() -> str:
    millis = time.time_ns() // 1_000_000
    return str(millis)[-DECISION_CODE_LENGTH:].zfill(DECISION_CODE_LENGTH)


def _code_in_use(db: Session, code: str) -> bool:
    # A failed lookup must not poison the surrounding action's transaction.
    try:
        with db.begin_nested():
            existing = db.scalar(
                select(ModerationDecision.id).where(ModerationDecision.decision_code == code).limit(1)
            )
    except SQLAlchemyError:
        logger.warning("Decision code lookup failed; assuming %s is available", code, exc_info=True)
        return False
    return existing is not None


def generate_decision_code(db: Session, *, attempts: int = DECISION_CODE_ATTEMPTS) -> str:
    """Return a six digit code not yet used by any stored decision.

    After ``attempts`` collisions the code is derived from the clock instead;
    that path does not check for uniqueness.
    """

    for _ in range(attempts):
        code = _random_code()
        if not _code_in_use(db, code):
            return code

    code = _fallback_code()
    logger.warning("Decision code space congested after %d attempts; using fallback %s", attempts, code)
    return code


__all__ = ["generate_decision_code"]
