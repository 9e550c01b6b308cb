# bridgehead/routes/community.py
"""
FastAPI routes for the community feed, posts, likes, reposts and replies.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bridgehead.db import get_session
from bridgehead.errors import InteractionConflictError, NotFoundError
from bridgehead.models import ContentStatus, MediaType
from bridgehead.security import AuthUser, get_current_user, get_optional_user
from bridgehead.services.comments import MAX_COMMENT_LENGTH, list_comments, reply_to_post
from bridgehead.services.feed import get_feed, liked_post_ids
from bridgehead.services.interactions import toggle_like, toggle_repost
from bridgehead.services.posts import MAX_POST_LENGTH, MAX_TOPIC_LENGTH, clean_content, create_post, get_post
from bridgehead.services.stats import cached_trending_topics


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Request models
class MediaIn(CamelModel):
    """Media reference produced by the upload pipeline."""
    type: MediaType = Field(MediaType.image, description="image or video")
    url: str = Field(..., min_length=1, description="Opaque media URL")
    file_id: Optional[str] = Field(None, description="Storage file id, if any")


class PostCreate(CamelModel):
    """Body of POST /posts."""
    content: str = Field(..., description=f"Post text (1-{MAX_POST_LENGTH} characters)")
    media: List[MediaIn] = Field(default_factory=list)
    topic: Optional[str] = Field(None, max_length=MAX_TOPIC_LENGTH, description="Topic tag (default: general)")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return clean_content(v, MAX_POST_LENGTH)


class ReplyCreate(CamelModel):
    """Body of POST /posts/{id}/reply."""
    content: str = Field(..., description=f"Reply text (1-{MAX_COMMENT_LENGTH} characters)")
    media: List[MediaIn] = Field(default_factory=list)

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return clean_content(v, MAX_COMMENT_LENGTH)


# Response models
class MediaOut(CamelModel):
    type: MediaType
    url: str
    file_id: Optional[str] = None


class PostOut(CamelModel):
    """A post as served to clients, with the caller's like state."""
    id: int
    author_id: int
    author_name: str
    author_avatar: Optional[str] = None
    author_badge: Optional[str] = None
    content: str
    media: List[MediaOut] = Field(default_factory=list)
    topic: str
    likes_count: int
    replies_count: int
    reposts_count: int
    status: ContentStatus
    created_at: datetime
    updated_at: datetime
    is_liked: bool = False


class FeedResponse(CamelModel):
    data: List[PostOut] = Field(..., description="Posts, newest first")
    next_cursor: Optional[datetime] = Field(None, description="Pass as ?cursor= for the next page; null at the end")


class CommentOut(CamelModel):
    id: int
    post_id: int
    author_id: int
    author_name: str
    author_avatar: Optional[str] = None
    content: str
    media: List[MediaOut] = Field(default_factory=list)
    status: ContentStatus
    created_at: datetime
    updated_at: datetime


class LikeResponse(CamelModel):
    message: str = Field(..., description="Liked or Unliked")
    is_liked: bool


class RepostResponse(CamelModel):
    message: str = Field(..., description="Reposted or Unreposted")
    is_reposted: bool


class TrendingTopic(CamelModel):
    topic: str
    posts: int = Field(..., description="Active posts in the window")


class TrendingTopicsResponse(CamelModel):
    topics: List[TrendingTopic]
    hours: int


def _post_out(post, is_liked: bool = False) -> PostOut:
    return PostOut.model_validate(post).model_copy(update={"is_liked": is_liked})


# Router
router = APIRouter(prefix="/api/community", tags=["community"])


@router.get("/posts", response_model=FeedResponse)
def read_feed(
    topic: Optional[str] = Query(None, description="Topic filter; 'all' or empty for every topic"),
    cursor: Optional[str] = Query(None, description="ISO timestamp; return posts strictly older"),
    limit: Optional[int] = Query(None, description="Page size (default 20, capped at 50)"),
    viewer: Optional[AuthUser] = Depends(get_optional_user),
) -> FeedResponse:
    """
    Community feed, newest first, cursor-paginated.

    Authenticated callers get isLiked filled in from a single batched ledger
    lookup; guests always see isLiked=false.
    """
    try:
        with get_session() as db:
            page = get_feed(db, topic=topic, cursor=cursor, limit=limit,
                            viewer_id=viewer.id if viewer else None)
            return FeedResponse(
                data=[_post_out(item.post, item.is_liked) for item in page.items],
                next_cursor=page.next_cursor,
            )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/posts", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_community_post(
    body: PostCreate,
    user: AuthUser = Depends(get_current_user),
) -> PostOut:
    """Create a post; the author's name, avatar and badge are copied onto it."""
    try:
        with get_session() as db:
            post = create_post(
                db,
                author=user,
                content=body.content,
                media=[m.model_dump(by_alias=True, exclude_none=True) for m in body.media],
                topic=body.topic,
            )
            return _post_out(post)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/posts/{post_id}", response_model=PostOut)
def read_post(
    post_id: int = Path(..., description="ID of the post", ge=1),
    viewer: Optional[AuthUser] = Depends(get_optional_user),
) -> PostOut:
    """Single active post, with the caller's like state."""
    try:
        with get_session() as db:
            post = get_post(db, post_id)
            liked = viewer is not None and post.id in liked_post_ids(db, viewer.id, [post.id])
            return _post_out(post, liked)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/posts/{post_id}/comments", response_model=List[CommentOut])
def read_comments(
    post_id: int = Path(..., description="ID of the post", ge=1),
) -> List[CommentOut]:
    """Active comments on a post, oldest first."""
    with get_session() as db:
        return [CommentOut.model_validate(c) for c in list_comments(db, post_id)]


@router.put("/posts/{post_id}/like", response_model=LikeResponse)
def like_post(
    post_id: int = Path(..., description="ID of the post to like or unlike", ge=1),
    user: AuthUser = Depends(get_current_user),
) -> LikeResponse:
    """Toggle the caller's like on a post."""
    try:
        with get_session() as db:
            result = toggle_like(db, post_id, user.id)
        return LikeResponse(message=result.message, is_liked=result.active)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InteractionConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/posts/{post_id}/repost", response_model=RepostResponse)
def repost_post(
    post_id: int = Path(..., description="ID of the post to repost or un-repost", ge=1),
    user: AuthUser = Depends(get_current_user),
) -> RepostResponse:
    """Toggle the caller's repost of a post."""
    try:
        with get_session() as db:
            result = toggle_repost(db, post_id, user.id)
        return RepostResponse(message=result.message, is_reposted=result.active)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InteractionConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/posts/{post_id}/reply", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def reply(
    body: ReplyCreate,
    post_id: int = Path(..., description="ID of the post to reply to", ge=1),
    user: AuthUser = Depends(get_current_user),
) -> CommentOut:
    """Reply to a post; bumps its reply counter in the same transaction."""
    try:
        with get_session() as db:
            comment = reply_to_post(
                db,
                post_id,
                author=user,
                content=body.content,
                media=[m.model_dump(by_alias=True, exclude_none=True) for m in body.media],
            )
            return CommentOut.model_validate(comment)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/topics/trending", response_model=TrendingTopicsResponse)
def trending_topics(
    hours: int = Query(24, ge=1, le=720, description="Look-back window in hours (1-720)"),
    limit: int = Query(5, ge=1, le=50, description="Number of topics to return (1-50)"),
) -> TrendingTopicsResponse:
    """Topics with the most active posts in the last `hours` hours."""
    with get_session() as db:
        topics = cached_trending_topics(db, hours=hours, limit=limit)
    return TrendingTopicsResponse(topics=[TrendingTopic(**t) for t in topics], hours=hours)
