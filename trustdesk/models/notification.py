"""SQLAlchemy ORM models for notifications and the outbound email log."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from trustdesk.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(100), nullable=False)
    object_type = Column(String(32), nullable=True)
    object_id = Column(String(64), nullable=True)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    emailed_at = Column(DateTime(timezone=True), nullable=True)

    recipient = relationship(
        "User",
        foreign_keys=[user_id],
        back_populates="notifications_received",
    )
    actor = relationship("User", foreign_keys=[actor_id])


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    email_to = Column(String(255), nullable=False)
    template = Column(String(64), nullable=False)
    subject = Column(String(255), nullable=False)
    # "sent" | "failed" | "skipped"
    status = Column(String(16), nullable=False)
    metadata_ = Column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


__all__ = ["Notification", "EmailLog"]
