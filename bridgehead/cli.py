# bridgehead/cli.py
from typing import Optional

import typer

from bridgehead.db import engine, get_session
from bridgehead.models import Base, User
from bridgehead.security import create_access_token
from bridgehead.services import seeder
from bridgehead.services.counters import reconcile_counters
from bridgehead.services.stats import get_trending_topics, get_user_stats
from bridgehead.errors import NotFoundError

app = typer.Typer(help="Bridgehead community CLI with subcommands")


@app.command("init-db")
def init_db_cmd():
    """Create any missing tables (use Alembic migrations in production)."""
    Base.metadata.create_all(bind=engine)
    typer.echo("✓ Tables created")


@app.command("seed")
def seed_cmd(
    users: int = typer.Option(200, help="Number of users"),
    posts: int = typer.Option(1000, help="Number of posts"),
    max_comments: int = typer.Option(6, help="Maximum comments per post"),
):
    """Populate the database with deterministic demo data."""
    seeder.seed_random_generators()

    with get_session() as db:
        us = seeder.make_users(db, users)
        ps = seeder.make_posts(db, us, posts)
        seeder.make_comments(db, ps, us, max_per_post=max_comments)
        seeder.make_interactions(db, ps, us)
    typer.echo(f"Seed complete: users={users}, posts={posts}")


@app.command("token")
def token_cmd(
    user_id: int = typer.Argument(..., help="User ID to issue a bearer token for", min=1),
    minutes: Optional[int] = typer.Option(None, "--minutes", "-m", help="Lifetime in minutes", min=1),
):
    """Mint a bearer token for an existing user (development use)."""
    from datetime import timedelta

    with get_session() as db:
        if db.query(User.id).filter(User.id == user_id).first() is None:
            typer.echo(f"❌ User {user_id} not found", err=True)
            raise typer.Exit(1)

    expires = timedelta(minutes=minutes) if minutes else None
    typer.echo(create_access_token(user_id, expires_delta=expires))


@app.command("reconcile")
def reconcile_cmd(
    post_id: Optional[int] = typer.Option(None, "--post", "-p", help="Only reconcile this post", min=1),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report drift without writing"),
):
    """Recompute post counters from the interaction ledger and comments."""
    try:
        with get_session() as db:
            corrections = reconcile_counters(db, post_id=post_id)
            if dry_run:
                db.rollback()
    except Exception as e:
        typer.echo(f"❌ Error reconciling counters: {e}", err=True)
        raise typer.Exit(1)

    if not corrections:
        typer.echo("✓ All counters match the ledger")
        return

    verb = "Would fix" if dry_run else "Fixed"
    typer.echo(f"\n🔧 {verb} {len(corrections)} counters:")
    typer.echo("─" * 50)
    for c in corrections:
        typer.echo(f"post {c.post_id:<8} {c.counter:<15} {c.stored:>6} → {c.actual}")


@app.command("trending")
def trending_cmd(
    hours: int = typer.Option(24, "--hours", "-h", help="Look-back window in hours", min=1, max=720),
    limit: int = typer.Option(5, "--limit", "-l", help="Number of topics (1-50)", min=1, max=50),
):
    """Show the busiest topics in the recent window."""
    try:
        with get_session() as db:
            topics = get_trending_topics(db, hours=hours, limit=limit)
    except Exception as e:
        typer.echo(f"❌ Error getting trending topics: {e}", err=True)
        raise typer.Exit(1)

    if not topics:
        typer.echo(f"No active posts in the last {hours} hours")
        return

    typer.echo(f"\n🔥 Top {len(topics)} topics (last {hours} hours):")
    typer.echo("─" * 40)
    for i, t in enumerate(topics, 1):
        typer.echo(f"{i:2d}. {t['topic']:<20} ({t['posts']:,} posts)")


@app.command("stats")
def stats_cmd(
    user_id: int = typer.Argument(..., help="User ID", min=1),
):
    """Show a user's community statistics."""
    try:
        with get_session() as db:
            stats = get_user_stats(db, user_id)
    except NotFoundError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"\n📊 Community stats for user {user_id}:")
    typer.echo("─" * 40)
    typer.echo(f"Posts:          {stats['community_posts']:,}")
    typer.echo(f"Replies:        {stats['community_replies']:,}")
    typer.echo(f"Contributions:  {stats['community_contributions']:,}")
    typer.echo(f"Likes received: {stats['likes_received']:,}")
    typer.echo(f"Reputation:     {stats['reputation_score']:,}")


if __name__ == "__main__":
    app()
