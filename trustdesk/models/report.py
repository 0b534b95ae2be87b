"""SQLAlchemy ORM model for user-submitted reports."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from trustdesk.database import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    reporter_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # "post" | "comment" | "user"
    content_type = Column(String(16), nullable=False, index=True)
    content_id = Column(String(64), nullable=False, index=True)

    # Cached so account-level actions can find reports even after the content is gone.
    content_author_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    reason = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)

    # "pending" | "resolved" | "dismissed"
    status = Column(String(32), nullable=False, server_default="pending", default="pending", index=True)

    moderator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    moderator_note = Column(Text, nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reporter = relationship("User", foreign_keys=[reporter_id])
    content_author = relationship("User", foreign_keys=[content_author_id])
    moderator = relationship("User", foreign_keys=[moderator_id])


__all__ = ["Report"]
