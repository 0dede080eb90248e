"""
Owner Avatar Service using Cloudinary

Owners can attach a picture to their card. The picture is checked locally,
uploaded to Cloudinary as a square thumbnail and the resulting URL is stored
as the owner's image_ref.

This service handles:
1. Local sanity checks (format, size, decodability)
2. Upload with thumbnail transformations
3. Returning the hosted image URL
"""

import hashlib
from io import BytesIO
from typing import Optional
from uuid import UUID

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from cloudinary import CloudinaryImage
from PIL import Image, UnidentifiedImageError

from apartment_ledger.config import get_settings
from apartment_ledger.models.ledger import ImageUpload


# Avatars smaller than this on their short side look broken on the card
MIN_AVATAR_DIMENSION = 64

AVATAR_TRANSFORMATION = [
    {"width": 256, "height": 256, "crop": "thumb", "gravity": "face"},
    {"quality": "auto"},
    {"fetch_format": "auto"},
]


class ImageServiceError(Exception):
    """Base exception for image service errors."""
    pass


class InvalidImageError(ImageServiceError):
    """The uploaded file is not a usable image."""
    pass


class ImageUploadError(ImageServiceError):
    """Failed to upload image to Cloudinary."""
    pass


class CloudinaryImageService:
    """
    Service for hosting owner avatars on Cloudinary.

    Flow:
    1. Receive raw image bytes and upload metadata
    2. Reject files that are too large, not images, or too small
    3. Upload to Cloudinary under a per-owner public ID
    4. Return the transformed thumbnail URL
    """

    def __init__(self):
        self._settings = get_settings().cloudinary
        self._app_settings = get_settings().app
        self._configured = False

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    def _generate_public_id(self, owner_id: UUID, filename: str) -> str:
        """
        Generate a public ID for Cloudinary.

        Format: owners/{owner_id}_{filename_hash}
        """
        filename_hash = hashlib.md5(filename.encode()).hexdigest()[:8]
        return f"owners/{owner_id}_{filename_hash}"

    def check_image(self, image_bytes: bytes, upload: ImageUpload) -> None:
        """
        Check an image before uploading it.

        Raises:
            InvalidImageError: If the file is too large, unreadable,
                               in an unsupported format or too small
        """
        if upload.file_size_bytes > self._app_settings.max_upload_size_bytes:
            raise InvalidImageError(
                f"Image is larger than {self._app_settings.max_upload_size_mb} MB"
            )

        extension = upload.original_filename.rsplit(".", 1)[-1].lower()
        if extension not in self._app_settings.supported_formats_list:
            raise InvalidImageError(f"Unsupported image format: .{extension}")

        try:
            img = Image.open(BytesIO(image_bytes))
            width, height = img.size
            img.verify()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImageError(f"Could not read image: {e}")

        if min(width, height) < MIN_AVATAR_DIMENSION:
            raise InvalidImageError(
                f"Image is too small (minimum {MIN_AVATAR_DIMENSION}px on the smallest side)"
            )

    async def upload_owner_image(
        self,
        image_bytes: bytes,
        upload: ImageUpload,
    ) -> str:
        """
        Upload an owner avatar and return its URL.

        Raises:
            InvalidImageError: If the image fails local checks
            ImageUploadError: If the upload fails
        """
        self.check_image(image_bytes, upload)
        self._configure()

        public_id = self._generate_public_id(upload.owner_id, upload.original_filename)
        try:
            result = cloudinary.uploader.upload(
                image_bytes,
                public_id=public_id,
                folder=self._settings.folder,
                resource_type="image",
                overwrite=True,
            )
        except cloudinary.exceptions.Error as e:
            raise ImageUploadError(f"Cloudinary error: {e}")
        except Exception as e:
            raise ImageUploadError(f"Failed to upload image: {e}")

        uploaded_url: Optional[str] = result.get("secure_url", result.get("url"))
        if not uploaded_url:
            raise ImageUploadError("No URL returned from Cloudinary")

        # Serve a square thumbnail rather than the original upload
        stored_id = result.get("public_id", public_id)
        thumbnail_url = CloudinaryImage(stored_id).build_url(
            transformation=AVATAR_TRANSFORMATION,
            secure=True,
        )
        return thumbnail_url or uploaded_url
