"""Service-level tests for account moderation and the authorization gate."""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi import HTTPException
from sqlalchemy import select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_trustdesk.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-trustdesk")

from trustdesk.database import SessionLocal  # noqa: E402
from trustdesk.models import Comment, EmailLog, ModerationDecision, ModerationLog, Notification, Post, User  # noqa: E402
from trustdesk.services import Actor, NotificationType, count_notifications, perform_action  # noqa: E402


def _act(actor, action: str, target_id, reason: str | None = None, extra=None, target_type: str = "user"):
    with SessionLocal() as session:
        return perform_action(
            session,
            actor,
            action=action,
            target_type=target_type,
            target_id=str(target_id),
            reason=reason,
            extra=extra,
        )


def _decisions(session, user_id) -> list[str]:
    stmt = (
        select(ModerationDecision.decision)
        .where(ModerationDecision.target_id == str(user_id))
        .order_by(ModerationDecision.created_at.asc())
    )
    return list(session.scalars(stmt))


def test_warning_clamps_spam_score(moderator, make_user) -> None:
    target = make_user(spam_score=90)

    _act(moderator, "warn_user", target, reason="spam links")

    with SessionLocal() as session:
        assert session.get(User, target).spam_score == 100
        assert _decisions(session, target) == ["warned"]
        notice = session.scalars(select(Notification).where(Notification.user_id == target)).one()
        code = session.scalars(select(ModerationDecision.decision_code)).one()
        assert f"#{code}" in notice.content


def test_ban_blocks_account_and_hides_moderator(moderator, make_user) -> None:
    target = make_user()

    _act(moderator, "ban_user", target, reason="harassment")

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.status == "blocked"
        assert user.spam_score == 100
        assert user.moderation_reason == "harassment"
        assert _decisions(session, target) == ["blocked"]
        notices = session.scalars(select(Notification).where(Notification.user_id == target)).all()
        assert notices
        assert all(notice.actor_id == target for notice in notices)


def test_moderator_cannot_run_admin_only_actions(moderator, make_user) -> None:
    target = make_user()

    for action, extra in (("grant_premium", {"plan": "pro"}), ("delete_user", None), ("revoke_copyright", None)):
        with pytest.raises(HTTPException) as exc_info:
            _act(moderator, action, target, extra=extra)
        assert exc_info.value.status_code == 403

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.is_premium is False
        assert user.status == "active"
        assert session.scalars(select(ModerationLog)).all() == []
        assert _decisions(session, target) == []


@pytest.mark.parametrize(
    "action",
    ["ban_user", "warn_user", "freeze_user", "shadow_ban", "restrict_like", "dismiss_content"],
)
def test_admin_accounts_are_immune(moderator, make_user, action) -> None:
    protected = make_user("admin")

    with pytest.raises(HTTPException) as exc_info:
        _act(moderator, action, protected)

    assert exc_info.value.status_code == 403
    with SessionLocal() as session:
        user = session.get(User, protected)
        assert user.status == "active"
        assert user.spam_score == 0
        assert user.shadow_banned is False


def test_admin_content_cannot_be_rejected(admin, moderator, make_post) -> None:
    post_id = make_post(admin.id, status="moderation")

    with pytest.raises(HTTPException) as exc_info:
        _act(moderator, "reject_content", post_id, target_type="post")

    assert exc_info.value.status_code == 403
    with SessionLocal() as session:
        assert session.get(Post, post_id).status == "moderation"


def test_non_staff_is_forbidden(make_user) -> None:
    caller = Actor(id=make_user(), role="user")
    target = make_user()

    with pytest.raises(HTTPException) as exc_info:
        _act(caller, "warn_user", target)

    assert exc_info.value.status_code == 403


def test_stored_role_wins_over_claimed_role(make_user) -> None:
    demoted = Actor(id=make_user("user"), role="admin")

    with pytest.raises(HTTPException) as exc_info:
        _act(demoted, "warn_user", make_user())

    assert exc_info.value.status_code == 403


def test_unknown_actor_cannot_claim_admin(make_user) -> None:
    ghost = Actor(id=uuid4(), role="admin")
    target = make_user()

    with pytest.raises(HTTPException) as exc_info:
        _act(ghost, "delete_user", target)

    assert exc_info.value.status_code == 403
    with SessionLocal() as session:
        assert session.get(User, target).status == "active"
        assert session.scalars(select(ModerationLog)).all() == []


@pytest.mark.parametrize("account_status", ["blocked", "deleted"])
def test_disabled_staff_account_is_forbidden(make_user, account_status) -> None:
    former = Actor(id=make_user("moderator", status=account_status), role="moderator")
    target = make_user()

    with pytest.raises(HTTPException) as exc_info:
        _act(former, "warn_user", target)

    assert exc_info.value.status_code == 403
    with SessionLocal() as session:
        assert session.get(User, target).spam_score == 0


@pytest.mark.parametrize("action", ["reject_content", "remove_comment", "dismiss_content"])
def test_admin_comments_are_immune(admin, moderator, make_user, make_post, make_comment, action) -> None:
    post_id = make_post(make_user(), comment_count=1)
    comment_id = make_comment(post_id, admin.id, is_nsfw=True)

    with pytest.raises(HTTPException) as exc_info:
        _act(moderator, action, comment_id, target_type="comment")

    assert exc_info.value.status_code == 403
    with SessionLocal() as session:
        comment = session.get(Comment, comment_id)
        assert comment.status == "approved"
        assert comment.is_nsfw is True
        assert session.get(Post, post_id).comment_count == 1


def test_missing_actor_is_unauthorized(make_user) -> None:
    with pytest.raises(HTTPException) as exc_info:
        _act(None, "warn_user", make_user())

    assert exc_info.value.status_code == 401


def test_restrictions_toggle_both_ways(moderator, make_user) -> None:
    target = make_user()

    _act(moderator, "restrict_follow", target)
    with SessionLocal() as session:
        assert session.get(User, target).restricted_follow is True

    _act(moderator, "restrict_follow", target)
    with SessionLocal() as session:
        assert session.get(User, target).restricted_follow is False
        assert _decisions(session, target) == ["restrict_follow", "unrestrict_follow"]
        assert count_notifications(session, target, type_=NotificationType.ACCOUNT_RESTRICTED) == 2


def test_shadow_ban_is_silent(moderator, make_user) -> None:
    target = make_user()

    _act(moderator, "shadow_ban", target)

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.shadow_banned is True
        assert user.shadow_banned_by == moderator.id
        assert user.shadow_banned_at is not None
        assert _decisions(session, target) == []
        assert count_notifications(session, target) == 0

    _act(moderator, "unshadow_ban", target)

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.shadow_banned is False
        assert user.shadow_banned_by is None


def test_freeze_then_unfreeze(moderator, make_user) -> None:
    target = make_user(spam_score=40)

    _act(moderator, "freeze_user", target, reason="suspicious logins")
    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.status == "frozen"
        assert user.frozen_at is not None

    _act(moderator, "unfreeze_user", target)
    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.status == "active"
        assert user.frozen_at is None
        assert user.spam_score == 0
        assert user.moderation_reason is None


def test_dismiss_content_on_account_freezes_without_decision(moderator, make_user) -> None:
    target = make_user()

    _act(moderator, "dismiss_content", target, reason="bot account")

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.status == "frozen"
        assert _decisions(session, target) == []
        assert [entry.action for entry in session.scalars(select(ModerationLog))] == ["dismiss_content"]


def test_deleted_account_is_terminal(admin, make_user) -> None:
    target = make_user()

    _act(admin, "delete_user", target, reason="fraud")
    _act(admin, "unban_user", target)

    with SessionLocal() as session:
        assert session.get(User, target).status == "deleted"
        assert _decisions(session, target) == ["deleted"]


def test_moderation_review_sends_email_when_allowed(moderator, make_user) -> None:
    opted_in = make_user()
    opted_out = make_user(email_moderation=False)

    _act(moderator, "moderation_user", opted_in, reason="under review")
    _act(moderator, "moderation_user", opted_out, reason="under review")

    with SessionLocal() as session:
        assert session.get(User, opted_in).status == "moderation"
        logs = session.scalars(select(EmailLog)).all()
        assert [(log.user_id, log.template) for log in logs] == [(opted_in, "account_moderation")]


def test_premium_grant_and_revoke(admin, make_user) -> None:
    target = make_user()
    before = datetime.now(timezone.utc)

    _act(admin, "grant_premium", target, extra={"plan": "Pro"})

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.is_premium is True
        assert user.premium_plan == "pro"
        expires = user.premium_until.replace(tzinfo=timezone.utc) if user.premium_until.tzinfo is None else user.premium_until
        assert expires >= before + timedelta(days=29)

    _act(admin, "revoke_premium", target)

    with SessionLocal() as session:
        user = session.get(User, target)
        assert user.is_premium is False
        assert user.premium_plan is None
        assert user.premium_until is None


def test_grant_premium_requires_known_plan(admin, make_user) -> None:
    target = make_user()

    with pytest.raises(HTTPException) as exc_info:
        _act(admin, "grant_premium", target, extra={"plan": "platinum"})

    assert exc_info.value.status_code == 400


def test_verification_toggles(admin, moderator, make_user) -> None:
    target = make_user()

    _act(moderator, "verify_user", target)
    with SessionLocal() as session:
        assert session.get(User, target).is_verified is True

    _act(admin, "unverify_user", target)
    with SessionLocal() as session:
        assert session.get(User, target).is_verified is False


def test_revoke_copyright_strips_post_protection(admin, make_user, make_post) -> None:
    author = make_user(copyright_eligible=True)
    protected = [make_post(author, copyright_protected=True) for _ in range(2)]
    other = make_post(make_user(), copyright_protected=True)

    _act(admin, "revoke_copyright", author)

    with SessionLocal() as session:
        assert session.get(User, author).copyright_eligible is False
        assert all(session.get(Post, post_id).copyright_protected is False for post_id in protected)
        assert session.get(Post, other).copyright_protected is True
