"""Product image uploads to the external media host."""

import base64
import logging

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from config import Settings
from core.exceptions import BadRequestError, MediaUploadError

logger = logging.getLogger(__name__)

# Seconds to wait for the media host before giving up
UPLOAD_TIMEOUT = 60


class MediaUploader:
    """Accepts raw image bytes and returns a durable URL."""

    def __init__(self, max_size_bytes: int):
        self.max_size_bytes = max_size_bytes

    def validate(self, content: bytes, content_type: str) -> None:
        """Reject files that are empty, too large or not images.

        Raises:
            BadRequestError: If the file is not acceptable.
        """
        if not content:
            raise BadRequestError("Uploaded image is empty")
        if not (content_type or "").startswith("image/"):
            raise BadRequestError("Uploaded file must be an image")
        self.check_size(len(content))

    def check_size(self, size: int) -> None:
        """Reject a file by its byte size alone.

        Raises:
            BadRequestError: If the size is over the limit.
        """
        if size > self.max_size_bytes:
            raise BadRequestError(
                f"Uploaded image exceeds {self.max_size_bytes // (1024 * 1024)}MB"
            )

    def upload(self, content: bytes, content_type: str) -> str:
        """Store an image and return its URL."""
        raise NotImplementedError


class CloudinaryUploader(MediaUploader):
    """Uploads images to Cloudinary.

    Credentials are passed on every call instead of through
    ``cloudinary.config`` so that nothing depends on SDK global state.
    """

    def __init__(self, settings: Settings):
        super().__init__(settings.max_image_size_bytes)
        self.settings = settings

    def upload(self, content: bytes, content_type: str) -> str:
        """Upload an image as a base64 data URI.

        Args:
            content: Raw image bytes.
            content_type: MIME type of the image, e.g. ``image/png``.

        Returns:
            The secure URL of the stored image.

        Raises:
            BadRequestError: If the file is not an acceptable image.
            MediaUploadError: If the media host is not configured or the
                upload fails.
        """
        self.validate(content, content_type)
        if not self.settings.media_host_configured:
            raise MediaUploadError(error="Media host credentials are not configured")

        data_uri = f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"
        try:
            result = cloudinary.uploader.upload(
                data_uri,
                folder=self.settings.cloudinary_folder,
                cloud_name=self.settings.cloudinary_cloud_name,
                api_key=self.settings.cloudinary_api_key,
                api_secret=self.settings.cloudinary_api_secret,
                timeout=UPLOAD_TIMEOUT,
            )
        except CloudinaryError as e:
            logger.error("Cloudinary upload failed: %s", e)
            raise MediaUploadError(error=str(e)) from e

        url = result.get("secure_url")
        if not url:
            raise MediaUploadError(error="Media host returned no URL")
        logger.info("Uploaded image (%d bytes) to %s", len(content), url)
        return url
