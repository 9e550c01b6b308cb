from datetime import datetime
from urllib.parse import quote

from sqlalchemy import (
    Boolean, Column, Integer, String, DateTime, Text, ForeignKey, Enum, JSON, UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

from enum import Enum as PyEnum
class ContentStatus(str, PyEnum):
    active = "active"
    deleted = "deleted"
    flagged = "flagged"

class InteractionType(str, PyEnum):
    like = "like"
    repost = "repost"

class MediaType(str, PyEnum):
    image = "image"
    video = "video"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    full_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    avatar = Column(String(512), nullable=True)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    posts = relationship("CommunityPost", back_populates="author")

    @property
    def avatar_url(self) -> str:
        if self.avatar:
            if self.avatar.startswith("http"):
                return self.avatar
            return f"/uploads/avatars/{self.avatar}"
        return f"https://ui-avatars.com/api/?name={quote(self.full_name)}&background=random"

    @property
    def badge(self):
        return "entrepreneur" if self.verified else None


class CommunityPost(Base):
    """
    A feed post.

    author_name/author_avatar/author_badge are a snapshot of the author taken at
    creation time. They are never refreshed, so they go stale when the user
    edits their profile.
    """
    __tablename__ = "community_posts"
    id = Column(Integer, primary_key=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    author_name = Column(String(50), nullable=False)
    author_avatar = Column(String(512), nullable=True)
    author_badge = Column(String(32), nullable=True)
    content = Column(Text, nullable=False)
    media = Column(JSON, nullable=False, default=list)
    topic = Column(String(50), nullable=False, default="general", index=True)

    # Only ever changed through atomic UPDATE ... SET n = n +/- 1
    likes_count = Column(Integer, nullable=False, default=0)
    replies_count = Column(Integer, nullable=False, default=0)
    reposts_count = Column(Integer, nullable=False, default=0)

    status = Column(Enum(ContentStatus, name="content_status"), nullable=False, default=ContentStatus.active)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    author = relationship("User", back_populates="posts")
    comments = relationship("CommunityComment", back_populates="post")

    __table_args__ = (
        CheckConstraint("likes_count >= 0", name="ck_posts_likes_nonneg"),
        CheckConstraint("replies_count >= 0", name="ck_posts_replies_nonneg"),
        CheckConstraint("reposts_count >= 0", name="ck_posts_reposts_nonneg"),
    )

Index("idx_posts_topic_created", CommunityPost.topic, CommunityPost.created_at.desc())
Index("idx_posts_created", CommunityPost.created_at.desc())
Index("idx_posts_author_created", CommunityPost.author_id, CommunityPost.created_at.desc())


class CommunityComment(Base):
    __tablename__ = "community_comments"
    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    author_name = Column(String(50), nullable=False)
    author_avatar = Column(String(512), nullable=True)
    content = Column(Text, nullable=False)
    media = Column(JSON, nullable=False, default=list)
    status = Column(Enum(ContentStatus, name="content_status"), nullable=False, default=ContentStatus.active)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    post = relationship("CommunityPost", back_populates="comments")

Index("idx_comments_post_created", CommunityComment.post_id, CommunityComment.created_at)


class Interaction(Base):
    """Ledger row: its existence is the source of truth for "user X liked post Y"."""
    __tablename__ = "interactions"
    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(InteractionType, name="interaction_type"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "type", name="uq_interactions_post_user_type"),
    )
