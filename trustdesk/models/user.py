"""SQLAlchemy ORM model for platform accounts."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from trustdesk.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(150), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True)

    # "user" | "moderator" | "admin"
    role = Column(String(32), nullable=False, server_default="user", default="user")
    # "active" | "moderation" | "frozen" | "blocked" | "deleted"
    status = Column(String(32), nullable=False, server_default="active", default="active", index=True)

    spam_score = Column(Integer, nullable=False, server_default="0", default=0)
    moderation_reason = Column(Text, nullable=True)
    frozen_at = Column(DateTime(timezone=True), nullable=True)

    restricted_follow = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    restricted_like = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    restricted_comment = Column(Boolean, nullable=False, server_default=expression.false(), default=False)

    shadow_banned = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    shadow_banned_at = Column(DateTime(timezone=True), nullable=True)
    shadow_banned_by = Column(UUID(as_uuid=True), nullable=True)

    is_verified = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    is_premium = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    premium_plan = Column(String(32), nullable=True)
    premium_until = Column(DateTime(timezone=True), nullable=True)

    copyright_eligible = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    coin_balance = Column(Integer, nullable=False, server_default="0", default=0)
    email_moderation = Column(Boolean, nullable=False, server_default=expression.true(), default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    withdrawal_requests = relationship(
        "WithdrawalRequest",
        foreign_keys="WithdrawalRequest.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    notifications_received = relationship(
        "Notification",
        foreign_keys="Notification.user_id",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover - repr helper
        return f"User(id={self.id!s}, username={self.username!r}, status={self.status!r})"


__all__ = ["User"]
