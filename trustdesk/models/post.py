"""SQLAlchemy ORM models for posts and their comments."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from trustdesk.database import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    author_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False, default="")
    slug = Column(String(320), nullable=True, index=True)
    content = Column(Text, nullable=False, default="")

    # "draft" | "moderation" | "published" | "removed" | "archived"
    status = Column(String(32), nullable=False, server_default="published", default="published", index=True)
    is_nsfw = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    moderation_reason = Column(Text, nullable=True)
    moderation_category = Column(String(64), nullable=True)
    moderation_due_at = Column(DateTime(timezone=True), nullable=True)

    # Fingerprint used to find the same body posted more than once by one author.
    content_hash = Column(String(128), nullable=True, index=True)

    removal_reason = Column(Text, nullable=True)
    removed_at = Column(DateTime(timezone=True), nullable=True)
    removal_decision_id = Column(UUID(as_uuid=True), nullable=True)

    copyright_protected = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    comment_count = Column(Integer, nullable=False, server_default="0", default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    author = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id = Column(UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    # "approved" | "rejected" | "removed"
    status = Column(String(32), nullable=False, server_default="approved", default="approved", index=True)
    is_nsfw = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    moderation_reason = Column(Text, nullable=True)
    moderation_category = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments")


__all__ = ["Post", "Comment"]
