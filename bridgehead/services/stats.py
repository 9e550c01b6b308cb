# bridgehead/services/stats.py
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from bridgehead.cache import RedisCache, redis_client
from bridgehead.config import DB_RETRY_ATTEMPTS, DB_RETRY_MIN_WAIT, DB_RETRY_MAX_WAIT, TRENDING_TTL_SECONDS
from bridgehead.errors import NotFoundError
from bridgehead.models import CommunityComment, CommunityPost, ContentStatus, User

POST_POINTS = 10
REPLY_POINTS = 5

def _rollback_before_retry(retry_state: RetryCallState) -> None:
    """A session that hit OperationalError must be rolled back before it can query again."""
    session = retry_state.args[0] if retry_state.args else retry_state.kwargs["session"]
    session.rollback()


# Read-only aggregates may retry on a dropped connection; writes never do.
read_retry = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(DB_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=DB_RETRY_MIN_WAIT, max=DB_RETRY_MAX_WAIT),
    before_sleep=_rollback_before_retry,
    reraise=True,
)


@read_retry
def get_user_stats(session: Session, user_id: int) -> Dict[str, int]:
    """
    Community contribution figures for one user.

    Args:
        session: Database session
        user_id: ID of the user

    Returns:
        Dict with post, reply and like totals plus a reputation score

    Raises:
        NotFoundError: if the user does not exist
    """
    if session.query(User.id).filter(User.id == user_id).first() is None:
        raise NotFoundError(f"User {user_id} not found")

    posts_count, likes_received = (
        session.query(
            func.count(CommunityPost.id),
            func.coalesce(func.sum(CommunityPost.likes_count), 0),
        )
        .filter(CommunityPost.author_id == user_id, CommunityPost.status == ContentStatus.active)
        .one()
    )
    replies_count = (
        session.query(func.count(CommunityComment.id))
        .filter(CommunityComment.author_id == user_id, CommunityComment.status == ContentStatus.active)
        .scalar()
    )

    return {
        "community_posts": posts_count,
        "community_replies": replies_count,
        "community_contributions": posts_count + replies_count,
        "likes_received": int(likes_received),
        "reputation_score": posts_count * POST_POINTS + replies_count * REPLY_POINTS + int(likes_received),
    }


@read_retry
def get_trending_topics(session: Session, hours: int = 24, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Topics ranked by how many active posts they received recently.

    Args:
        session: Database session
        hours: Size of the look-back window
        limit: Maximum number of topics to return

    Returns:
        List of {"topic", "posts"} dicts, busiest first, ties by topic name
    """
    since = datetime.utcnow() - timedelta(hours=hours)
    post_count = func.count(CommunityPost.id).label("posts")
    rows = (
        session.query(CommunityPost.topic, post_count)
        .filter(CommunityPost.status == ContentStatus.active, CommunityPost.created_at >= since)
        .group_by(CommunityPost.topic)
        .order_by(post_count.desc(), CommunityPost.topic.asc())
        .limit(limit)
        .all()
    )
    return [{"topic": topic, "posts": posts} for topic, posts in rows]


def cached_trending_topics(
    session: Session,
    hours: int = 24,
    limit: int = 5,
    cache: Optional[RedisCache] = None,
) -> List[Dict[str, Any]]:
    """get_trending_topics behind the Redis cache (a miss when caching is off)."""
    cache = cache or redis_client
    key = f"trending_topics:{hours}:{limit}"
    cached = cache.get(key)
    if cached is not None:
        return cached
    topics = get_trending_topics(session, hours=hours, limit=limit)
    cache.set(key, topics, TRENDING_TTL_SECONDS)
    return topics
