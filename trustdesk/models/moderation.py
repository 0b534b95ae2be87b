"""SQLAlchemy ORM models for moderation decisions and the audit log."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID

from trustdesk.database import Base


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


class ModerationDecision(Base):
    """Outcome of a moderation action, quoted to the affected user by its code."""

    __tablename__ = "moderation_decisions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # "post" | "comment" | "user" | "report" | "withdrawal"
    target_type = Column(String(16), nullable=False)
    target_id = Column(String(64), nullable=False)
    decision = Column(String(32), nullable=False)
    reason = Column(Text, nullable=True)
    moderator_id = Column(String(64), nullable=False)
    # Not a unique constraint: the timestamp fallback may repeat a code.
    decision_code = Column(String(6), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_moderation_decisions_target", "target_type", "target_id", "decision", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr helper
        return f"ModerationDecision(code={self.decision_code!r}, decision={self.decision!r}, target={self.target_id!r})"


class ModerationLog(Base):
    """Append-only audit trail; one row per dispatched action."""

    __tablename__ = "moderation_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    moderator_id = Column(String(64), nullable=False, index=True)
    action = Column(String(64), nullable=False)
    target_type = Column(String(16), nullable=False)
    target_id = Column(String(64), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)


__all__ = ["ModerationDecision", "ModerationLog"]
