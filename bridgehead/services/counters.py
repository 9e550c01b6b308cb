# bridgehead/services/counters.py
"""Denormalized post counters: atomic bumps and ledger-based reconciliation."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from bridgehead.models import CommunityComment, CommunityPost, ContentStatus, Interaction, InteractionType

logger = logging.getLogger(__name__)

COUNTER_COLUMNS = {
    "likes_count": CommunityPost.likes_count,
    "replies_count": CommunityPost.replies_count,
    "reposts_count": CommunityPost.reposts_count,
}

LEDGER_COUNTERS = {
    InteractionType.like: "likes_count",
    InteractionType.repost: "reposts_count",
}


@dataclass
class CounterCorrection:
    """One counter that disagreed with its source rows."""
    post_id: int
    counter: str
    stored: int
    actual: int


def bump_counter(db: Session, post_id: int, counter: str, delta: int) -> bool:
    """
    Atomically add ``delta`` to one counter of a post.

    The arithmetic happens in the UPDATE statement itself, never on a value read
    into Python. Decrements only apply while the counter is positive.

    Returns:
        True if a row was updated
    """
    column = COUNTER_COLUMNS[counter]
    query = db.query(CommunityPost).filter(CommunityPost.id == post_id)
    if delta < 0:
        query = query.filter(column >= -delta)
    updated = query.update({column: column + delta}, synchronize_session=False)
    return updated > 0


def reconcile_counters(db: Session, post_id: Optional[int] = None) -> List[CounterCorrection]:
    """
    Recompute counters from the interaction ledger and the comment store.

    Likes and reposts are counted from ledger rows, replies from active
    comments. Only counters that drifted are rewritten.

    Args:
        db: Database session
        post_id: Restrict to a single post (default: every post)

    Returns:
        The corrections that were applied
    """
    posts_query = db.query(CommunityPost.id, CommunityPost.likes_count,
                           CommunityPost.replies_count, CommunityPost.reposts_count)
    ledger_query = db.query(Interaction.post_id, Interaction.type, func.count(Interaction.id)) \
        .group_by(Interaction.post_id, Interaction.type)
    replies_query = db.query(CommunityComment.post_id, func.count(CommunityComment.id)) \
        .filter(CommunityComment.status == ContentStatus.active) \
        .group_by(CommunityComment.post_id)

    if post_id is not None:
        posts_query = posts_query.filter(CommunityPost.id == post_id)
        ledger_query = ledger_query.filter(Interaction.post_id == post_id)
        replies_query = replies_query.filter(CommunityComment.post_id == post_id)

    actual: Dict[int, Dict[str, int]] = {}
    for pid, kind, count in ledger_query.all():
        actual.setdefault(pid, {})[LEDGER_COUNTERS[InteractionType(kind)]] = count
    for pid, count in replies_query.all():
        actual.setdefault(pid, {})["replies_count"] = count

    corrections: List[CounterCorrection] = []
    for pid, likes, replies, reposts in posts_query.all():
        stored = {"likes_count": likes, "replies_count": replies, "reposts_count": reposts}
        expected = actual.get(pid, {})
        fixes = {}
        for counter, stored_value in stored.items():
            actual_value = expected.get(counter, 0)
            if stored_value != actual_value:
                corrections.append(CounterCorrection(pid, counter, stored_value, actual_value))
                fixes[COUNTER_COLUMNS[counter]] = actual_value
        if fixes:
            db.query(CommunityPost).filter(CommunityPost.id == pid).update(fixes, synchronize_session=False)

    if corrections:
        logger.info("Reconciled %d drifted counters", len(corrections))
    return corrections
