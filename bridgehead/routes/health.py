"""
Liveness and dependency checks.

The database is critical; Redis is optional, so losing it only degrades the
service (cached reads fall back to the database).
"""

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bridgehead.cache import redis_client
from bridgehead.config import APP_VERSION
from bridgehead.db import get_session
from bridgehead.models import CommunityComment, CommunityPost, Interaction, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

COUNTED_MODELS = {
    "users": User,
    "community_posts": CommunityPost,
    "community_comments": CommunityComment,
    "interactions": Interaction,
}


def _now() -> str:
    return datetime.utcnow().isoformat()


def table_counts(db: Session) -> Dict[str, int]:
    return {name: db.query(func.count(model.id)).scalar() for name, model in COUNTED_MODELS.items()}


def check_database_health() -> Dict[str, str]:
    """Run a trivial query; ``{"status": "ok"}`` or ``"down"`` with the error."""
    try:
        with get_session() as db:
            db.query(func.count(User.id)).scalar()
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        return {"status": "down", "error": f"Database error: {e}"}
    return {"status": "ok"}


def check_redis_health() -> Dict[str, str]:
    """``disabled`` when caching is off, else ``ok`` / ``down`` from a PING."""
    if not redis_client._enabled:
        return {"status": "disabled"}
    if redis_client.ping():
        return {"status": "ok"}
    return {"status": "down", "error": "Redis ping failed"}


@router.get("/")
def health_check() -> Dict[str, Any]:
    db_health = check_database_health()
    redis_health = check_redis_health()

    if db_health["status"] == "down":
        overall = "down"
    elif redis_health["status"] == "down":
        overall = "degraded"
    else:
        overall = "ok"

    return {
        "status": overall,
        "db": db_health,
        "redis": redis_health,
        "version": APP_VERSION,
        "timestamp": _now(),
    }


@router.get("/db")
def database_health() -> Dict[str, Any]:
    """Database status plus row counts for the community tables."""
    report: Dict[str, Any] = check_database_health()
    if report["status"] != "ok":
        return report

    try:
        with get_session() as db:
            report["tables"] = table_counts(db)
    except SQLAlchemyError as e:
        report["error"] = f"Extended check failed: {e}"
    report["timestamp"] = _now()
    return report


@router.get("/redis")
def redis_health() -> Dict[str, Any]:
    """Redis status plus a set/get/delete round trip when it is reachable."""
    report: Dict[str, Any] = check_redis_health()
    if report["status"] == "ok":
        report["operations"] = redis_client.round_trip()
        report["timestamp"] = _now()
    return report
