"""Image gallery endpoints backed by an in-memory catalogue."""

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, status

from pwa_backend.schemas.content import Image, ImageCreate, ImageCreateResponse

router = APIRouter(prefix="/api/images", tags=["images"])

_images: list[Image] = [
    Image(
        id=i,
        url=f"https://picsum.photos/300/200?random={i}",
        title=f"Image {i}",
        description=f"Description of image {i}",
    )
    for i in range(1, 7)
]


@router.get("", response_model=list[Image])
async def list_images():
    """List all images."""
    return _images


@router.get("/{image_id}", response_model=Image)
async def get_image(image_id: int):
    """Get an image by id."""
    for image in _images:
        if image.id == image_id:
            return image
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")


@router.post("", response_model=ImageCreateResponse, status_code=status.HTTP_201_CREATED)
async def add_image(image_data: ImageCreate):
    """Add an image to the catalogue."""
    image = Image(
        id=max((image.id for image in _images), default=0) + 1,
        title=image_data.title,
        url=image_data.url,
        description=image_data.description or "",
        created_at=datetime.now(UTC),
    )
    _images.append(image)
    return ImageCreateResponse(message="Image added successfully", image=image)
