"""Tests for rolling-window ban escalation."""
from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_trustdesk.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-trustdesk")

from trustdesk.constants import ESCALATION_REASON  # noqa: E402
from trustdesk.database import SessionLocal  # noqa: E402
from trustdesk.models import ModerationDecision, User  # noqa: E402
from trustdesk.services import NotificationType, count_notifications, perform_action  # noqa: E402
from trustdesk.services import moderation_service  # noqa: E402
from trustdesk.services.escalation import count_recent_bans  # noqa: E402


def _seed_bans(user_id, *ages: timedelta) -> None:
    now = datetime.now(timezone.utc)
    with SessionLocal() as session:
        for index, age in enumerate(ages):
            session.add(
                ModerationDecision(
                    target_type="user",
                    target_id=str(user_id),
                    decision="blocked",
                    reason="earlier ban",
                    moderator_id=str(uuid.uuid4()),
                    decision_code=str(900000 + index),
                    created_at=now - age,
                )
            )
        session.commit()


def _ban(actor, user_id):
    with SessionLocal() as session:
        return perform_action(session, actor, action="ban_user", target_type="user", target_id=str(user_id), reason="spam")


def _decisions(session, user_id) -> list[ModerationDecision]:
    stmt = (
        select(ModerationDecision)
        .where(ModerationDecision.target_id == str(user_id))
        .order_by(ModerationDecision.created_at.asc())
    )
    return list(session.scalars(stmt))


def test_fourth_ban_in_window_deletes_account(moderator, make_user) -> None:
    target = make_user()
    _seed_bans(target, timedelta(days=20), timedelta(days=10), timedelta(days=1))

    _ban(moderator, target)

    with SessionLocal() as session:
        assert session.get(User, target).status == "deleted"
        decisions = _decisions(session, target)
        assert len(decisions) == 5
        final = decisions[-1]
        assert final.decision == "deleted"
        assert final.reason == ESCALATION_REASON
        assert final.moderator_id == str(moderator.id)
        assert count_notifications(session, target, type_=NotificationType.ACCOUNT_DELETED) == 1


def test_bans_outside_window_do_not_count(moderator, make_user) -> None:
    target = make_user()
    _seed_bans(target, timedelta(days=45), timedelta(days=40), timedelta(days=2))

    _ban(moderator, target)

    with SessionLocal() as session:
        assert session.get(User, target).status == "blocked"
        assert [d.decision for d in _decisions(session, target)] == ["blocked"] * 4


def test_unban_forgives_recent_strikes(moderator, make_user) -> None:
    target = make_user()
    _seed_bans(target, timedelta(days=45), timedelta(days=9), timedelta(days=3), timedelta(hours=5))

    with SessionLocal() as session:
        perform_action(session, moderator, action="unban_user", target_type="user", target_id=str(target))

    with SessionLocal() as session:
        now = datetime.now(timezone.utc)
        assert count_recent_bans(session, target, now) == 0
        remaining = _decisions(session, target)
        assert len(remaining) == 1

    _ban(moderator, target)

    with SessionLocal() as session:
        assert session.get(User, target).status == "blocked"
        assert count_recent_bans(session, target, datetime.now(timezone.utc)) == 1


def test_escalation_failure_keeps_the_ban(moderator, make_user, monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("history unavailable")

    monkeypatch.setattr(moderation_service, "check_escalation", _boom)
    target = make_user()
    _seed_bans(target, timedelta(days=3), timedelta(days=2), timedelta(days=1))

    result = _ban(moderator, target)

    assert result.success is True
    with SessionLocal() as session:
        assert session.get(User, target).status == "blocked"
        assert len(_decisions(session, target)) == 4
