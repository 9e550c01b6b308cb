from __future__ import annotations
import random
from datetime import timedelta
from typing import Sequence
from faker import Faker
from sqlalchemy.orm import Session

from bridgehead.models import CommunityComment, CommunityPost, ContentStatus, User
from bridgehead.services.counters import bump_counter
from bridgehead.services.interactions import toggle_like, toggle_repost

SEED = 1337

fake = Faker()

TOPICS = ["startups", "events", "general", "investing", "hiring", "marketing", "rentals", "local"]


def seed_random_generators(seed: int = SEED) -> None:
    """Make a seed run reproducible."""
    random.seed(seed)
    Faker.seed(seed)
    fake.seed_instance(seed)
    fake.unique.clear()


def make_users(db: Session, n_users: int) -> list[User]:
    users = [
        User(
            full_name=fake.name()[:50],
            email=fake.unique.email(),
            verified=random.random() < 0.3,
        )
        for _ in range(n_users)
    ]
    db.add_all(users); db.flush()
    return users


def make_posts(db: Session, users: Sequence[User], n_posts: int) -> list[CommunityPost]:
    # topic weights skew toward the busier boards
    weights = [5 if t in ("startups", "general", "events") else 1 for t in TOPICS]
    posts: list[CommunityPost] = []
    for _ in range(n_posts):
        u = random.choice(users)
        created = fake.date_time_between(start_date="-30d", end_date="now")
        p = CommunityPost(
            author_id=u.id,
            author_name=u.full_name,
            author_avatar=u.avatar_url,
            author_badge=u.badge,
            content=fake.paragraph(nb_sentences=random.randint(1, 4))[:1000],
            media=[],
            topic=random.choices(TOPICS, weights=weights, k=1)[0],
            likes_count=0, replies_count=0, reposts_count=0,
            status=ContentStatus.active,
            created_at=created, updated_at=created,
        )
        db.add(p); posts.append(p)
    db.flush()
    return posts


def make_comments(db: Session, posts: Sequence[CommunityPost], users: Sequence[User], max_per_post: int = 6):
    for p in posts:
        for _ in range(random.randint(0, max_per_post)):
            u = random.choice(users)
            when = p.created_at + timedelta(minutes=random.randint(1, 600))
            db.add(CommunityComment(
                post_id=p.id, author_id=u.id,
                author_name=u.full_name, author_avatar=u.avatar_url,
                content=fake.sentence()[:500], media=[],
                status=ContentStatus.active,
                created_at=when, updated_at=when,
            ))
            bump_counter(db, p.id, "replies_count", 1)
    db.flush()


def make_interactions(db: Session, posts: Sequence[CommunityPost], users: Sequence[User],
                      max_likers: int = 25, repost_rate: float = 0.1):
    """
    Like and repost through the toggle service so counters match the ledger.
    """
    for p in posts:
        likers = random.sample(list(users), random.randint(0, min(max_likers, len(users))))
        for u in likers:
            toggle_like(db, p.id, u.id)
            if random.random() < repost_rate:
                toggle_repost(db, p.id, u.id)
    db.flush()
