# bridgehead/services/comments.py
"""Comment store: replies to posts and chronological listing."""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from bridgehead.models import CommunityComment, ContentStatus
from bridgehead.services.counters import bump_counter
from bridgehead.services.posts import clean_content, clean_media, get_post

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500


def reply_to_post(
    db: Session,
    post_id: int,
    author,
    content: str,
    media: Optional[List[Dict]] = None,
) -> CommunityComment:
    """
    Add a comment to a post and bump the post's reply counter.

    The comment stores a copy of the author's current name and avatar rather
    than a live reference. Insert and counter update share the caller's
    transaction.

    Args:
        db: Database session
        post_id: ID of the post being replied to
        author: The authenticated caller (id, full_name, avatar_url)
        content: Comment text, trimmed, 1-500 characters
        media: Optional list of media dicts

    Returns:
        The flushed CommunityComment

    Raises:
        NotFoundError: if the post does not exist or is not active
    """
    get_post(db, post_id)

    comment = CommunityComment(
        post_id=post_id,
        author_id=author.id,
        author_name=author.full_name,
        author_avatar=author.avatar_url,
        content=clean_content(content, MAX_COMMENT_LENGTH),
        media=clean_media(media),
        status=ContentStatus.active,
    )
    db.add(comment)
    db.flush()

    bump_counter(db, post_id, "replies_count", 1)
    logger.info("User %s replied to post %s (comment %s)", author.id, post_id, comment.id)
    return comment


def list_comments(db: Session, post_id: int) -> List[CommunityComment]:
    """
    Active comments for a post, oldest first.

    An unknown post simply has no comments.
    """
    return (
        db.query(CommunityComment)
        .filter(CommunityComment.post_id == post_id, CommunityComment.status == ContentStatus.active)
        .order_by(CommunityComment.created_at.asc(), CommunityComment.id.asc())
        .all()
    )
