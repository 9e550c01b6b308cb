# bridgehead/services/feed.py
"""Community feed: cursor-paginated, reverse-chronological, with viewer like state."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from bridgehead.config import FEED_DEFAULT_LIMIT, FEED_MAX_LIMIT
from bridgehead.models import CommunityPost, ContentStatus, Interaction, InteractionType

ALL_TOPICS = "all"

# "+02:00" in an unencoded query string decodes to " 02:00"
_DECODED_PLUS_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?) (\d{2}:?\d{2})$")


@dataclass
class FeedItem:
    """A post plus whether the requesting viewer has liked it."""
    post: CommunityPost
    is_liked: bool = False


@dataclass
class FeedPage:
    """One page of the feed."""
    items: List[FeedItem] = field(default_factory=list)
    next_cursor: Optional[datetime] = None


def parse_cursor(cursor: str) -> datetime:
    """
    Parse an ISO-8601 cursor into the naive-UTC form stored in the database.

    A positive offset whose "+" arrived as a space is restored.

    Raises:
        ValueError: if the cursor is not a timestamp
    """
    raw = _DECODED_PLUS_OFFSET.sub(r"\1+\2", cursor.strip())
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid cursor: {cursor!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return FEED_DEFAULT_LIMIT
    if limit < 1:
        raise ValueError("Limit must be at least 1")
    return min(limit, FEED_MAX_LIMIT)


def liked_post_ids(db: Session, user_id: int, post_ids: Iterable[int]) -> Set[int]:
    """Single batched ledger lookup for the posts on a page."""
    post_ids = list(post_ids)
    if not post_ids:
        return set()
    rows = (
        db.query(Interaction.post_id)
        .filter(
            Interaction.user_id == user_id,
            Interaction.type == InteractionType.like,
            Interaction.post_id.in_(post_ids),
        )
        .all()
    )
    return {row.post_id for row in rows}


def get_feed(
    db: Session,
    topic: Optional[str] = None,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    viewer_id: Optional[int] = None,
) -> FeedPage:
    """
    Build one page of the community feed.

    Posts sharing a creation timestamp are not ordered by any secondary key, so a
    crowded instant at a page boundary can be duplicated or skipped.

    Args:
        db: Database session
        topic: Topic filter; None, "" and "all" mean every topic
        cursor: ISO timestamp; only posts strictly older are returned
        limit: Page size, clamped to FEED_MAX_LIMIT
        viewer_id: Authenticated caller, used to annotate is_liked

    Returns:
        FeedPage with items and the cursor for the next page (None at the end)
    """
    page_size = clamp_limit(limit)

    query = db.query(CommunityPost).filter(CommunityPost.status == ContentStatus.active)
    if topic and topic != ALL_TOPICS:
        query = query.filter(CommunityPost.topic == topic)
    if cursor:
        query = query.filter(CommunityPost.created_at < parse_cursor(cursor))

    posts = query.order_by(CommunityPost.created_at.desc()).limit(page_size).all()

    liked: Set[int] = set()
    if viewer_id is not None:
        liked = liked_post_ids(db, viewer_id, (p.id for p in posts))

    return FeedPage(
        items=[FeedItem(post=p, is_liked=p.id in liked) for p in posts],
        next_cursor=posts[-1].created_at if len(posts) == page_size else None,
    )
