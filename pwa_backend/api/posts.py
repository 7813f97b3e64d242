"""Post feed endpoints (static sample data until posts are persisted)."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status

from pwa_backend.api.dependencies import get_current_user
from pwa_backend.models.user import User
from pwa_backend.schemas.content import Post, PostCreate, PostListResponse, PostResponse

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
async def list_posts(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """List posts."""
    posts = [
        Post(
            id=1,
            title="Welcome to the PWA",
            content="A complete progressive web app with offline support.",
            author="System",
            timestamp=datetime.now(UTC),
            likes=5,
        )
    ]
    return PostListResponse(posts=posts, total=len(posts))


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Create a post authored by the current user."""
    now = datetime.now(UTC)
    post = Post(
        id=int(now.timestamp() * 1000),
        title=post_data.title,
        content=post_data.content,
        image=post_data.image,
        author=current_user.username,
        author_id=current_user.id,
        timestamp=now,
    )
    return PostResponse(message="Post created successfully", post=post)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get a post by id."""
    post = Post(
        id=post_id,
        title="Sample post",
        content="This is a sample post",
        author="System",
        timestamp=datetime.now(UTC),
    )
    return PostResponse(post=post)
