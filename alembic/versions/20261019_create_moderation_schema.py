"""Create accounts, content, reports, wallet and moderation tables.

Revision ID: 20261019_create_moderation_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261019_create_moderation_schema"
down_revision: str | None = None
branch_labels = None
depends_on = None


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False)


def upgrade() -> None:
    bind = op.get_bind()
    existing = set(inspect(bind).get_table_names())

    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("username", sa.String(length=150), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
            sa.Column("spam_score", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("moderation_reason", sa.Text(), nullable=True),
            sa.Column("frozen_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("restricted_follow", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("restricted_like", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("restricted_comment", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("shadow_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("shadow_banned_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("shadow_banned_by", _uuid(), nullable=True),
            sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("premium_plan", sa.String(length=32), nullable=True),
            sa.Column("premium_until", sa.DateTime(timezone=True), nullable=True),
            sa.Column("copyright_eligible", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("coin_balance", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("email_moderation", sa.Boolean(), nullable=False, server_default=sa.true()),
            _created_at(),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("username"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_username", "users", ["username"])
        op.create_index("ix_users_status", "users", ["status"])

    if "posts" not in existing:
        op.create_table(
            "posts",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("author_id", _uuid(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False, server_default=""),
            sa.Column("slug", sa.String(length=320), nullable=True),
            sa.Column("content", sa.Text(), nullable=False, server_default=""),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="published"),
            sa.Column("is_nsfw", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("moderation_reason", sa.Text(), nullable=True),
            sa.Column("moderation_category", sa.String(length=64), nullable=True),
            sa.Column("moderation_due_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("content_hash", sa.String(length=128), nullable=True),
            sa.Column("removal_reason", sa.Text(), nullable=True),
            sa.Column("removed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("removal_decision_id", _uuid(), nullable=True),
            sa.Column("copyright_protected", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("comment_count", sa.Integer(), nullable=False, server_default="0"),
            _created_at(),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_posts_author_id", "posts", ["author_id"])
        op.create_index("ix_posts_slug", "posts", ["slug"])
        op.create_index("ix_posts_status", "posts", ["status"])
        op.create_index("ix_posts_content_hash", "posts", ["content_hash"])

    if "comments" not in existing:
        op.create_table(
            "comments",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("post_id", _uuid(), nullable=False),
            sa.Column("author_id", _uuid(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="approved"),
            sa.Column("is_nsfw", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("moderation_reason", sa.Text(), nullable=True),
            sa.Column("moderation_category", sa.String(length=64), nullable=True),
            _created_at(),
            sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_comments_post_id", "comments", ["post_id"])
        op.create_index("ix_comments_author_id", "comments", ["author_id"])
        op.create_index("ix_comments_status", "comments", ["status"])

    if "reports" not in existing:
        op.create_table(
            "reports",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("reporter_id", _uuid(), nullable=False),
            sa.Column("content_type", sa.String(length=16), nullable=False),
            sa.Column("content_id", sa.String(length=64), nullable=False),
            sa.Column("content_author_id", _uuid(), nullable=True),
            sa.Column("reason", sa.String(length=120), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
            sa.Column("moderator_id", _uuid(), nullable=True),
            sa.Column("moderator_note", sa.Text(), nullable=True),
            sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
            _created_at(),
            sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["content_author_id"], ["users.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["moderator_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"])
        op.create_index("ix_reports_content_type", "reports", ["content_type"])
        op.create_index("ix_reports_content_id", "reports", ["content_id"])
        op.create_index("ix_reports_content_author_id", "reports", ["content_author_id"])
        op.create_index("ix_reports_status", "reports", ["status"])

    if "notifications" not in existing:
        op.create_table(
            "notifications",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("user_id", _uuid(), nullable=False),
            sa.Column("actor_id", _uuid(), nullable=False),
            sa.Column("type", sa.String(length=100), nullable=False),
            sa.Column("object_type", sa.String(length=32), nullable=True),
            sa.Column("object_id", sa.String(length=64), nullable=True),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
            _created_at(),
            sa.Column("emailed_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["actor_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
        op.create_index("ix_notifications_actor_id", "notifications", ["actor_id"])

    if "email_logs" not in existing:
        op.create_table(
            "email_logs",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("user_id", _uuid(), nullable=True),
            sa.Column("email_to", sa.String(length=255), nullable=False),
            sa.Column("template", sa.String(length=64), nullable=False),
            sa.Column("subject", sa.String(length=255), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False),
            sa.Column("metadata", postgresql.JSONB(), nullable=True),
            _created_at(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_email_logs_user_id", "email_logs", ["user_id"])

    if "withdrawal_requests" not in existing:
        op.create_table(
            "withdrawal_requests",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("user_id", _uuid(), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
            sa.Column("reviewed_by", _uuid(), nullable=True),
            sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("rejection_reason", sa.Text(), nullable=True),
            _created_at(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_withdrawal_requests_user_id", "withdrawal_requests", ["user_id"])
        op.create_index("ix_withdrawal_requests_status", "withdrawal_requests", ["status"])

    if "coin_transactions" not in existing:
        op.create_table(
            "coin_transactions",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("user_id", _uuid(), nullable=False),
            sa.Column("type", sa.String(length=32), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("balance_after", sa.Integer(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            _created_at(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_coin_transactions_user_id", "coin_transactions", ["user_id"])

    if "moderation_decisions" not in existing:
        op.create_table(
            "moderation_decisions",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("target_type", sa.String(length=16), nullable=False),
            sa.Column("target_id", sa.String(length=64), nullable=False),
            sa.Column("decision", sa.String(length=32), nullable=False),
            sa.Column("reason", sa.Text(), nullable=True),
            sa.Column("moderator_id", sa.String(length=64), nullable=False),
            sa.Column("decision_code", sa.String(length=6), nullable=False),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_moderation_decisions_decision_code", "moderation_decisions", ["decision_code"])
        op.create_index(
            "ix_moderation_decisions_target",
            "moderation_decisions",
            ["target_type", "target_id", "decision", "created_at"],
        )

    if "moderation_logs" not in existing:
        op.create_table(
            "moderation_logs",
            sa.Column("id", _uuid(), nullable=False),
            sa.Column("moderator_id", sa.String(length=64), nullable=False),
            sa.Column("action", sa.String(length=64), nullable=False),
            sa.Column("target_type", sa.String(length=16), nullable=False),
            sa.Column("target_id", sa.String(length=64), nullable=False),
            sa.Column("reason", sa.Text(), nullable=True),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_moderation_logs_moderator_id", "moderation_logs", ["moderator_id"])
        op.create_index("ix_moderation_logs_created_at", "moderation_logs", ["created_at"])


def downgrade() -> None:
    for table in (
        "moderation_logs",
        "moderation_decisions",
        "coin_transactions",
        "withdrawal_requests",
        "email_logs",
        "notifications",
        "reports",
        "comments",
        "posts",
        "users",
    ):
        op.drop_table(table)
