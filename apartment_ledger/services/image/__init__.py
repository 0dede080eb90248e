"""Image hosting services package."""

from apartment_ledger.services.image.cloudinary_service import (
    CloudinaryImageService,
    ImageServiceError,
    ImageUploadError,
    InvalidImageError,
)

__all__ = [
    "CloudinaryImageService",
    "ImageServiceError",
    "ImageUploadError",
    "InvalidImageError",
]
