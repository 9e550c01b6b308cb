"""Shared fixtures: an in-memory SQLite database swapped in for the app's session factory."""

import os
from datetime import datetime, timedelta

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_REDIS_CACHE"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import bridgehead.db as db_module
from bridgehead.db import get_session
from bridgehead.main import app
from bridgehead.models import Base, CommunityPost, ContentStatus, User
from bridgehead.security import create_access_token

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def in_memory_db(monkeypatch):
    """Fresh schema per test; every get_session() call talks to it."""
    engine = db_module.make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    monkeypatch.setattr(db_module, "SessionLocal", SessionLocal)

    yield SessionLocal

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def create_user(full_name: str = "Ada Founder", email: str = None, verified: bool = False,
                avatar: str = None) -> int:
    with get_session() as db:
        user = User(
            full_name=full_name,
            email=email or f"{full_name.lower().replace(' ', '.')}@example.com",
            verified=verified,
            avatar=avatar,
        )
        db.add(user)
        db.flush()
        return user.id


def create_post_row(author_id: int, created_at: datetime, topic: str = "general",
                    status: ContentStatus = ContentStatus.active, content: str = "hello",
                    likes_count: int = 0) -> int:
    """Insert a post with a fixed timestamp, bypassing the service layer."""
    with get_session() as db:
        author = db.get(User, author_id)
        post = CommunityPost(
            author_id=author_id,
            author_name=author.full_name,
            author_avatar=author.avatar_url,
            author_badge=author.badge,
            content=content,
            media=[],
            topic=topic,
            likes_count=likes_count,
            replies_count=0,
            reposts_count=0,
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(post)
        db.flush()
        return post.id


def load_post(post_id: int) -> dict:
    with get_session() as db:
        post = db.get(CommunityPost, post_id)
        return {
            "likes_count": post.likes_count,
            "replies_count": post.replies_count,
            "reposts_count": post.reposts_count,
            "author_name": post.author_name,
        }


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def user_id():
    return create_user("Ada Founder", verified=True)


@pytest.fixture
def other_user_id():
    return create_user("Grace Investor")


@pytest.fixture
def headers(user_id):
    return auth_headers(user_id)


@pytest.fixture
def post_id(user_id):
    return create_post_row(user_id, BASE_TIME, topic="startups")


@pytest.fixture
def three_posts(user_id):
    """Active posts at t1 < t2 < t3, returned as [(id, created_at), ...] oldest first."""
    times = [BASE_TIME + timedelta(minutes=i) for i in range(3)]
    return [(create_post_row(user_id, t), t) for t in times]
