"""Service-level tests for post and comment moderation."""
from __future__ import annotations

import os

from sqlalchemy import func, select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_trustdesk.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-trustdesk")

from trustdesk.database import SessionLocal  # noqa: E402
from trustdesk.models import Comment, ModerationDecision, ModerationLog, Notification, Post, Report  # noqa: E402
from trustdesk.services import NotificationType, count_notifications, perform_action  # noqa: E402
from trustdesk.services import moderation_service  # noqa: E402


def _act(actor, action: str, target_type: str, target_id, reason: str | None = None, extra=None):
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


def _decisions_for(session, target_id) -> list[ModerationDecision]:
    stmt = select(ModerationDecision).where(ModerationDecision.target_id == str(target_id))
    return list(session.scalars(stmt))


def _reports_for(session, content_id) -> list[Report]:
    return list(session.scalars(select(Report).where(Report.content_id == str(content_id))))


def test_approving_post_publishes_and_closes_reports(moderator, make_user, make_post, make_report) -> None:
    author = make_user()
    reporter = make_user()
    post_id = make_post(author, status="moderation", is_nsfw=True, moderation_reason="flagged", moderation_category="spam")
    make_report(reporter, "post", post_id)

    result = _act(moderator, "approve_content", "post", post_id)

    assert result.success is True
    assert result.action == "approve_content"
    with SessionLocal() as session:
        post = session.get(Post, post_id)
        assert post.status == "published"
        assert post.is_nsfw is False
        assert post.moderation_reason is None
        assert post.moderation_category is None
        assert _reports_for(session, post_id) == []
        decisions = _decisions_for(session, post_id)
        assert [d.decision for d in decisions] == ["approved"]
        assert count_notifications(session, author, type_=NotificationType.MODERATION_APPROVED) == 1
        assert count_notifications(session, reporter, type_=NotificationType.REPORT_NO_VIOLATION) == 1


def test_reporters_are_notified_once_across_repeated_approvals(moderator, make_user, make_post, make_report) -> None:
    author = make_user()
    reporter = make_user()
    other_reporter = make_user()
    post_id = make_post(author, status="moderation")
    make_report(reporter, "post", post_id, reason="spam")
    make_report(reporter, "post", post_id, reason="abuse")
    make_report(other_reporter, "post", post_id)

    _act(moderator, "approve_content", "post", post_id)
    _act(moderator, "approve_content", "post", post_id)

    with SessionLocal() as session:
        assert count_notifications(session, reporter, type_=NotificationType.REPORT_NO_VIOLATION) == 1
        assert count_notifications(session, other_reporter, type_=NotificationType.REPORT_NO_VIOLATION) == 1


def test_rejecting_post_records_removal_and_keeps_reports(moderator, make_user, make_post, make_report) -> None:
    author = make_user()
    reporter = make_user()
    post_id = make_post(author, status="moderation")
    make_report(reporter, "post", post_id)

    _act(moderator, "reject_content", "post", post_id, reason="Hate speech")

    with SessionLocal() as session:
        post = session.get(Post, post_id)
        (decision,) = _decisions_for(session, post_id)
        assert decision.decision == "removed"
        assert post.status == "removed"
        assert post.removal_reason == "Hate speech"
        assert post.removed_at is not None
        assert post.removal_decision_id == decision.id

        (report,) = _reports_for(session, post_id)
        assert report.status == "resolved"
        assert report.moderator_id == moderator.id
        assert report.moderator_note == "Hate speech"

        notice = session.scalars(
            select(Notification).where(
                Notification.user_id == author,
                Notification.type == NotificationType.MODERATION_REJECTED.value,
            )
        ).one()
        assert f"#{decision.decision_code}" in notice.content
        assert "Hate speech" in notice.content
        assert count_notifications(session, reporter, type_=NotificationType.REPORT_ACTION_TAKEN) == 1


def test_removed_post_is_terminal(moderator, make_user, make_post) -> None:
    post_id = make_post(make_user(), status="removed")

    result = _act(moderator, "approve_content", "post", post_id)

    assert result.success is True
    with SessionLocal() as session:
        assert session.get(Post, post_id).status == "removed"
        assert _decisions_for(session, post_id) == []


def test_approval_cascades_to_duplicate_posts(moderator, make_user, make_post, make_report) -> None:
    author = make_user()
    reporter = make_user()
    first = make_post(author, status="moderation", content_hash="abc123")
    second = make_post(author, status="published", is_nsfw=True, content_hash="abc123")
    untouched = make_post(make_user(), status="moderation", content_hash="abc123")
    make_report(reporter, "post", first)
    make_report(reporter, "post", second)

    _act(moderator, "approve_content", "post", first)

    with SessionLocal() as session:
        assert session.get(Post, first).status == "published"
        duplicate = session.get(Post, second)
        assert duplicate.status == "published"
        assert duplicate.is_nsfw is False
        assert _reports_for(session, first) == []
        assert _reports_for(session, second) == []
        assert session.get(Post, untouched).status == "moderation"
        assert _decisions_for(session, second) == []


def test_rejection_cascade_points_duplicates_at_primary_decision(moderator, make_user, make_post) -> None:
    author = make_user()
    first = make_post(author, status="moderation", content_hash="dup")
    second = make_post(author, status="moderation", content_hash="dup")

    _act(moderator, "reject_content", "post", first, reason="spam")

    with SessionLocal() as session:
        (decision,) = _decisions_for(session, first)
        duplicate = session.get(Post, second)
        assert duplicate.status == "removed"
        assert duplicate.removal_decision_id == decision.id


def test_cascade_failure_keeps_primary_decision(moderator, make_user, make_post, monkeypatch) -> None:
    author = make_user()
    post_id = make_post(author, status="moderation", content_hash="dup")

    def _boom(*args, **kwargs):
        raise RuntimeError("cascade store unavailable")

    monkeypatch.setattr(moderation_service, "resolve_duplicates", _boom)

    result = _act(moderator, "approve_content", "post", post_id)

    assert result.success is True
    with SessionLocal() as session:
        assert session.get(Post, post_id).status == "published"
        assert len(_decisions_for(session, post_id)) == 1


def test_comment_count_tracks_visible_comments(moderator, make_user, make_post, make_comment) -> None:
    author = make_user()
    post_id = make_post(author, comment_count=0)
    keep = make_comment(post_id, make_user())
    reject = make_comment(post_id, make_user())
    flagged = make_comment(post_id, make_user(), is_nsfw=True)

    _act(moderator, "reject_content", "comment", reject, reason="rude")

    with SessionLocal() as session:
        assert session.get(Comment, reject).status == "rejected"
        assert session.get(Post, post_id).comment_count == 1

    _act(moderator, "approve_content", "comment", flagged)

    with SessionLocal() as session:
        live = session.scalar(
            select(func.count(Comment.id)).where(
                Comment.post_id == post_id,
                Comment.status == "approved",
                Comment.is_nsfw.is_(False),
            )
        )
        assert live == 2
        assert session.get(Post, post_id).comment_count == live
        assert session.get(Comment, keep).status == "approved"


def test_comment_rejection_cascades_to_identical_flagged_comments(moderator, make_user, make_post, make_comment) -> None:
    spammer = make_user()
    post_id = make_post(make_user())
    other_post = make_post(make_user())
    primary = make_comment(post_id, spammer, content="buy followers now", is_nsfw=True)
    copy = make_comment(other_post, spammer, content="buy followers now", is_nsfw=True)
    clean_copy = make_comment(other_post, spammer, content="buy followers now")

    _act(moderator, "reject_content", "comment", primary)

    with SessionLocal() as session:
        assert session.get(Comment, copy).status == "rejected"
        assert session.get(Comment, clean_copy).status == "approved"
        assert session.get(Post, other_post).comment_count == 1


def test_dismiss_content_removes_without_decision(moderator, make_user, make_post, make_report) -> None:
    post_id = make_post(make_user(), status="moderation")
    make_report(make_user(), "post", post_id)

    _act(moderator, "dismiss_content", "post", post_id, reason="obvious spam")

    with SessionLocal() as session:
        post = session.get(Post, post_id)
        assert post.status == "removed"
        assert post.removal_decision_id is None
        assert _reports_for(session, post_id) == []
        assert _decisions_for(session, post_id) == []
        logged = session.scalars(select(ModerationLog).where(ModerationLog.target_id == str(post_id))).all()
        assert [entry.action for entry in logged] == ["dismiss_content"]


def test_direct_post_status_changes(moderator, make_user, make_post) -> None:
    author = make_user()
    archived = make_post(author, status="published")
    removed = make_post(author, status="moderation")

    _act(moderator, "archive_post", "post", archived)
    _act(moderator, "remove_post", "post", removed, reason="duplicate")
    _act(moderator, "approve_post", "post", archived)

    with SessionLocal() as session:
        assert session.get(Post, archived).status == "archived"
        post = session.get(Post, removed)
        assert post.status == "removed"
        assert post.removal_reason == "duplicate"


def test_remove_comment_updates_count(moderator, make_user, make_post, make_comment) -> None:
    post_id = make_post(make_user(), comment_count=5)
    comment_id = make_comment(post_id, make_user())

    _act(moderator, "remove_comment", "comment", comment_id)

    with SessionLocal() as session:
        assert session.get(Comment, comment_id).status == "removed"
        assert session.get(Post, post_id).comment_count == 0


def test_rejected_comment_is_terminal(moderator, make_user, make_post, make_comment) -> None:
    post_id = make_post(make_user())
    comment_id = make_comment(post_id, make_user(), status="rejected")

    _act(moderator, "approve_content", "comment", comment_id)
    _act(moderator, "approve_comment", "comment", comment_id)

    with SessionLocal() as session:
        assert session.get(Comment, comment_id).status == "rejected"
        assert _decisions_for(session, comment_id) == []


def test_draft_post_is_left_alone(moderator, make_user, make_post) -> None:
    author = make_user()
    drafts = [make_post(author, status="draft") for _ in range(3)]

    _act(moderator, "approve_content", "post", drafts[0])
    _act(moderator, "approve_post", "post", drafts[1])
    _act(moderator, "reject_content", "post", drafts[2], reason="spam")

    with SessionLocal() as session:
        assert [session.get(Post, post_id).status for post_id in drafts] == ["draft", "draft", "draft"]
        assert session.scalars(select(ModerationDecision)).all() == []
