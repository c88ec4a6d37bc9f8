"""
# Image Upload Service

Thin async client for the image host (Cloudinary's REST upload API) used for blog
featured images.

## Operations

- **upload_image**: validates the file (image MIME type, size limit), signs the request
  and POSTs it to `/image/upload`. Returns the hosted URL and the `public_id` needed to
  delete it later.
- **delete_image**: POSTs to `/image/destroy`. Removal is best effort: failures are
  logged and reported as `False`, never raised, because a dangling hosted image must not
  fail the blog write that superseded it.

## Request Signing

Cloudinary authenticates uploads with a SHA-1 signature over the sorted request
parameters followed by the API secret:

```
sha1("folder=blogs&timestamp=1700000000" + api_secret)
```
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from blog_platform.config import settings
from blog_platform.managers.logging_manager import get_logger

logger = get_logger(prefix="[Image Upload]")

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"


class ImageUploadError(Exception):
    """Raised when a featured image cannot be validated or uploaded."""


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """Compute the Cloudinary signature for a set of request parameters."""
    payload = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1((payload + api_secret).encode("utf-8")).hexdigest()


class ImageUploadService:
    """
    Uploads and removes featured images on Cloudinary.

    Args:
        transport (Optional[httpx.AsyncBaseTransport]): Custom transport for the HTTP
            client, e.g. `httpx.MockTransport` in tests.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def _endpoint(self, action: str) -> str:
        return f"{CLOUDINARY_API_BASE}/{settings.CLOUDINARY_CLOUD_NAME}/image/{action}"

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        signed = {key: value for key, value in params.items() if value not in (None, "")}
        signed["signature"] = sign_params(signed, settings.CLOUDINARY_API_SECRET.get_secret_value())
        signed["api_key"] = settings.CLOUDINARY_API_KEY
        return signed

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.IMAGE_UPLOAD_TIMEOUT, transport=self._transport)

    async def upload_image(self, content: bytes, filename: str, content_type: Optional[str]) -> UploadedImage:
        """
        Upload an image and return where it is hosted.

        Args:
            content (bytes): Raw file bytes.
            filename (str): Original file name, forwarded to the host.
            content_type (Optional[str]): MIME type reported by the client.

        Returns:
            UploadedImage: Secure URL and public id of the hosted image.

        Raises:
            ImageUploadError: If the file is not an image, is empty or too large, the host
                is not configured, or the host rejects the upload.
        """
        if not content_type or not content_type.startswith("image/"):
            raise ImageUploadError("Featured image must be an image file")
        if not content:
            raise ImageUploadError("Featured image is empty")
        if len(content) > settings.MAX_IMAGE_SIZE_BYTES:
            raise ImageUploadError("Featured image exceeds the maximum allowed size")
        if not settings.cloudinary_configured:
            raise ImageUploadError("Image hosting is not configured")

        data = self._signed({"timestamp": str(int(time.time())), "folder": settings.CLOUDINARY_FOLDER})
        start_time = time.time()
        try:
            async with self._client() as client:
                response = await client.post(
                    self._endpoint("upload"),
                    data=data,
                    files={"file": (filename or "upload", content, content_type)},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Image upload failed after %.3fs: %s", time.time() - start_time, e)
            raise ImageUploadError("Image host rejected the upload") from e

        url = payload.get("secure_url") or payload.get("url")
        public_id = payload.get("public_id")
        if not url or not public_id:
            logger.error("Image host response missing url/public_id: %s", sorted(payload))
            raise ImageUploadError("Image host returned an incomplete response")

        logger.info("Uploaded image %s in %.3fs", public_id, time.time() - start_time)
        return UploadedImage(url=url, public_id=public_id)

    async def delete_image(self, public_id: Optional[str]) -> bool:
        """
        Remove a hosted image. Returns `True` if the host confirmed the removal.
        """
        if not public_id:
            return False
        if not settings.cloudinary_configured:
            logger.warning("Skipping removal of image %s: image hosting is not configured", public_id)
            return False

        data = self._signed({"public_id": public_id, "timestamp": str(int(time.time()))})
        try:
            async with self._client() as client:
                response = await client.post(self._endpoint("destroy"), data=data)
                response.raise_for_status()
                result = response.json().get("result")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to remove image %s: %s", public_id, e)
            return False

        if result != "ok":
            logger.warning("Image host did not remove %s (result: %s)", public_id, result)
            return False
        logger.info("Removed image %s", public_id)
        return True


image_upload_service = ImageUploadService()
