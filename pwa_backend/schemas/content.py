"""Post and image schemas."""

from datetime import datetime

from pydantic import Field

from pwa_backend.schemas.base import CamelModel


class Post(CamelModel):
    """A post in the feed."""

    id: int
    title: str
    content: str
    author: str
    author_id: int | None = None
    image: str | None = None
    timestamp: datetime
    status: str = "published"
    likes: int = 0


class PostCreate(CamelModel):
    """Create post request."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    image: str | None = None


class PostListResponse(CamelModel):
    """Feed listing."""

    success: bool = True
    posts: list[Post]
    total: int


class PostResponse(CamelModel):
    """Single post."""

    success: bool = True
    message: str | None = None
    post: Post


class Image(CamelModel):
    """An image in the gallery."""

    id: int
    url: str
    title: str
    description: str = ""
    created_at: datetime | None = None


class ImageCreate(CamelModel):
    """Add image request."""

    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    description: str | None = None


class ImageCreateResponse(CamelModel):
    """Result of adding an image."""

    success: bool = True
    message: str
    image: Image
