# bridgehead/services/posts.py
"""Post creation and lookup."""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from bridgehead.errors import NotFoundError
from bridgehead.models import CommunityPost, ContentStatus, MediaType

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 1000
MAX_TOPIC_LENGTH = 50
DEFAULT_TOPIC = "general"


def clean_content(content: Optional[str], max_length: int) -> str:
    """Trim user text and enforce the length bounds shared by posts and comments."""
    text = (content or "").strip()
    if not text:
        raise ValueError("Content is required")
    if len(text) > max_length:
        raise ValueError(f"Content cannot be more than {max_length} characters")
    return text


def clean_media(media: Optional[List[Dict]]) -> List[Dict]:
    """Normalise media entries to ``{"type", "url"[, "fileId"]}`` dicts."""
    cleaned = []
    for item in media or []:
        url = (item.get("url") or "").strip()
        if not url:
            raise ValueError("Media url is required")
        entry = {"type": MediaType(item.get("type") or MediaType.image).value, "url": url}
        if item.get("fileId"):
            entry["fileId"] = str(item["fileId"])
        cleaned.append(entry)
    return cleaned


def create_post(
    db: Session,
    author,
    content: str,
    media: Optional[List[Dict]] = None,
    topic: Optional[str] = None,
) -> CommunityPost:
    """
    Create a post carrying a snapshot of the author's display fields.

    Args:
        db: Database session
        author: The authenticated caller (id, full_name, avatar_url, badge)
        content: Post text, trimmed, 1-1000 characters
        media: Optional list of media dicts from the upload pipeline
        topic: Topic tag (default: "general")

    Returns:
        The flushed CommunityPost
    """
    topic = (topic or DEFAULT_TOPIC).strip() or DEFAULT_TOPIC
    if len(topic) > MAX_TOPIC_LENGTH:
        raise ValueError(f"Topic cannot be more than {MAX_TOPIC_LENGTH} characters")

    post = CommunityPost(
        author_id=author.id,
        author_name=author.full_name,
        author_avatar=author.avatar_url,
        author_badge=author.badge,
        content=clean_content(content, MAX_POST_LENGTH),
        media=clean_media(media),
        topic=topic,
        likes_count=0,
        replies_count=0,
        reposts_count=0,
        status=ContentStatus.active,
    )
    db.add(post)
    db.flush()
    logger.info("User %s created post %s in topic %r", author.id, post.id, topic)
    return post


def get_post(db: Session, post_id: int, active_only: bool = True) -> CommunityPost:
    """
    Fetch a post by id.

    Raises:
        NotFoundError: if the post does not exist (or is not active when active_only)
    """
    query = db.query(CommunityPost).filter(CommunityPost.id == post_id)
    if active_only:
        query = query.filter(CommunityPost.status == ContentStatus.active)
    post = query.first()
    if post is None:
        raise NotFoundError(f"Post {post_id} not found")
    return post
