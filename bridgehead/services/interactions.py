# bridgehead/services/interactions.py
"""
Interaction ledger: like and repost toggles.

A ledger row per (post, user, type) is the source of truth; the post's counter
is a denormalized copy. Both writes of a toggle go through the caller's session
and commit together, so a failure between them rolls both back.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bridgehead.errors import InteractionConflictError
from bridgehead.models import Interaction, InteractionType
from bridgehead.services.counters import LEDGER_COUNTERS, bump_counter
from bridgehead.services.posts import get_post

logger = logging.getLogger(__name__)

MESSAGES = {
    InteractionType.like: ("Liked", "Unliked"),
    InteractionType.repost: ("Reposted", "Unreposted"),
}


@dataclass
class ToggleResult:
    """Outcome of a toggle: the new state and its human-readable message."""
    post_id: int
    type: InteractionType
    active: bool
    message: str


def find_interaction(db: Session, post_id: int, user_id: int, kind: InteractionType) -> Optional[Interaction]:
    return (
        db.query(Interaction)
        .filter(Interaction.post_id == post_id, Interaction.user_id == user_id, Interaction.type == kind)
        .first()
    )


def toggle_interaction(db: Session, post_id: int, user_id: int, kind: InteractionType) -> ToggleResult:
    """
    Flip the caller's interaction of ``kind`` on a post.

    An existing row is deleted and the counter decremented; otherwise a row is
    inserted and the counter incremented. A concurrent duplicate insert is
    rejected by the ledger's unique constraint; a delete that finds the row
    already gone leaves the counter alone.

    Raises:
        NotFoundError: if the post does not exist or is not active
        InteractionConflictError: if the unique constraint rejected the insert,
            or the row to remove had already been deleted
    """
    get_post(db, post_id)
    counter = LEDGER_COUNTERS[kind]
    on_message, off_message = MESSAGES[kind]

    existing = find_interaction(db, post_id, user_id, kind)
    if existing is not None:
        # A concurrent unlike may have removed the row since it was read
        removed = (
            db.query(Interaction)
            .filter(Interaction.id == existing.id)
            .delete(synchronize_session=False)
        )
        if removed != 1:
            logger.warning("Stale %s by user %s on post %s already removed", kind.value, user_id, post_id)
            raise InteractionConflictError(
                f"{kind.value.capitalize()} on post {post_id} was already removed"
            )
        bump_counter(db, post_id, counter, -1)
        logger.info("User %s removed %s on post %s", user_id, kind.value, post_id)
        return ToggleResult(post_id=post_id, type=kind, active=False, message=off_message)

    try:
        db.add(Interaction(post_id=post_id, user_id=user_id, type=kind))
        db.flush()
    except IntegrityError as e:
        logger.warning("Duplicate %s by user %s on post %s rejected", kind.value, user_id, post_id)
        raise InteractionConflictError(
            f"{kind.value.capitalize()} on post {post_id} is already being recorded"
        ) from e

    bump_counter(db, post_id, counter, 1)
    logger.info("User %s added %s on post %s", user_id, kind.value, post_id)
    return ToggleResult(post_id=post_id, type=kind, active=True, message=on_message)


def toggle_like(db: Session, post_id: int, user_id: int) -> ToggleResult:
    return toggle_interaction(db, post_id, user_id, InteractionType.like)


def toggle_repost(db: Session, post_id: int, user_id: int) -> ToggleResult:
    return toggle_interaction(db, post_id, user_id, InteractionType.repost)
