"""Shared fixtures for the moderation test-suite."""
from __future__ import annotations

import os
from typing import Any, Callable, Iterator
from uuid import UUID, uuid4

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_trustdesk.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-trustdesk")

from trustdesk.database import Base, SessionLocal, engine  # noqa: E402
from trustdesk.models import Comment, Post, Report, User, WithdrawalRequest  # noqa: E402
from trustdesk.services import Actor  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    yield


@pytest.fixture()
def db() -> Iterator[Any]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _persist(instance: Any) -> UUID:
    with SessionLocal() as session:
        session.add(instance)
        session.commit()
        return instance.id


@pytest.fixture()
def make_user() -> Callable[..., UUID]:
    def _factory(role: str = "user", **fields: Any) -> UUID:
        suffix = uuid4().hex[:8]
        fields.setdefault("username", f"{role}-{suffix}")
        fields.setdefault("email", f"{role}-{suffix}@example.com")
        return _persist(User(role=role, **fields))

    return _factory


@pytest.fixture()
def make_post() -> Callable[..., UUID]:
    def _factory(author_id: UUID, **fields: Any) -> UUID:
        fields.setdefault("title", "A post")
        fields.setdefault("slug", f"a-post-{uuid4().hex[:6]}")
        fields.setdefault("content", "Some content")
        return _persist(Post(author_id=author_id, **fields))

    return _factory


@pytest.fixture()
def make_comment() -> Callable[..., UUID]:
    def _factory(post_id: UUID, author_id: UUID, **fields: Any) -> UUID:
        fields.setdefault("content", "Nice post")
        return _persist(Comment(post_id=post_id, author_id=author_id, **fields))

    return _factory


@pytest.fixture()
def make_report() -> Callable[..., UUID]:
    def _factory(reporter_id: UUID, content_type: str, content_id: UUID, **fields: Any) -> UUID:
        fields.setdefault("reason", "spam")
        return _persist(Report(reporter_id=reporter_id, content_type=content_type, content_id=str(content_id), **fields))

    return _factory


@pytest.fixture()
def make_withdrawal() -> Callable[..., UUID]:
    def _factory(user_id: UUID, amount: int, **fields: Any) -> UUID:
        return _persist(WithdrawalRequest(user_id=user_id, amount=amount, **fields))

    return _factory


@pytest.fixture()
def moderator(make_user) -> Actor:
    return Actor(id=make_user("moderator"), role="moderator")


@pytest.fixture()
def admin(make_user) -> Actor:
    return Actor(id=make_user("admin"), role="admin")
