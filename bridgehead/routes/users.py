# bridgehead/routes/users.py
"""FastAPI routes for per-user community statistics."""

from fastapi import APIRouter, HTTPException, Path
from pydantic import Field

from bridgehead.db import get_session
from bridgehead.errors import NotFoundError
from bridgehead.routes.community import CamelModel
from bridgehead.services.stats import get_user_stats

router = APIRouter(prefix="/api/users", tags=["users"])


class UserStatsResponse(CamelModel):
    """Response model for a user's community statistics."""
    community_posts: int = Field(..., description="Active posts authored")
    community_replies: int = Field(..., description="Active replies authored")
    community_contributions: int = Field(..., description="Posts plus replies")
    likes_received: int = Field(..., description="Likes across the user's active posts")
    reputation_score: int = Field(..., description="posts*10 + replies*5 + likes received")


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
def read_user_stats(
    user_id: int = Path(..., description="ID of the user", ge=1),
) -> UserStatsResponse:
    """Community contribution figures for one user."""
    try:
        with get_session() as db:
            return UserStatsResponse(**get_user_stats(db, user_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
