"""
Image hosting: forwards uploads to Cloudinary.

Uses a signed upload when CLOUDINARY_API_KEY/SECRET are set, otherwise an
unsigned upload with CLOUDINARY_UPLOAD_PRESET. One attempt, no retries.
"""

import base64
import hashlib
import logging
import time
from functools import lru_cache

import httpx

from tastebase.config import get_settings
from tastebase.errors import InvalidImage, UploadError

logger = logging.getLogger(__name__)

RECIPE_IMAGE_FOLDER = "Tastebase"
AVATAR_FOLDER = "Tastebase/avatars"


def sign_params(params: dict, api_secret: str) -> str:
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


class ImageHost:

    def __init__(
        self, cloud_name: str, upload_preset: str = "",
        api_key: str = "", api_secret: str = "",
        max_bytes: int = 5 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.api_key = api_key
        self.api_secret = api_secret
        self.max_bytes = max_bytes
        self._transport = transport

    @property
    def upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"

    def validate(self, data: bytes, content_type: str | None) -> None:
        if not data:
            raise InvalidImage("No file provided")
        if not (content_type or "").startswith("image/"):
            raise InvalidImage("File must be an image")
        if len(data) > self.max_bytes:
            raise InvalidImage(f"File must be {self.max_bytes // (1024 * 1024)}MB or smaller")

    def _form_fields(self, data_uri: str, folder: str) -> dict:
        if self.api_key and self.api_secret:
            params = {"folder": folder, "timestamp": str(int(time.time()))}
            return {
                "file": data_uri,
                "api_key": self.api_key,
                "signature": sign_params(params, self.api_secret),
                **params,
            }
        if self.upload_preset:
            return {"file": data_uri, "upload_preset": self.upload_preset, "folder": folder}
        raise UploadError(
            "Cloudinary upload preset or API credentials not configured. Set "
            "CLOUDINARY_UPLOAD_PRESET or CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET."
        )

    async def upload(self, data: bytes, content_type: str | None, folder: str = RECIPE_IMAGE_FOLDER) -> str:
        """Validate and upload an image, returning its public https URL."""
        self.validate(data, content_type)
        if not self.cloud_name:
            raise UploadError("Cloudinary cloud name not configured. Set CLOUDINARY_CLOUD_NAME.")

        encoded = base64.b64encode(data).decode("ascii")
        fields = self._form_fields(f"data:{content_type};base64,{encoded}", folder)

        async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
            try:
                resp = await client.post(self.upload_url, data=fields)
            except httpx.HTTPError as e:
                logger.error(f"Cloudinary upload failed: {e}")
                raise UploadError("Failed to upload image to Cloudinary") from e

        if resp.status_code >= 400:
            logger.error(f"Cloudinary upload error {resp.status_code}: {resp.text[:500]}")
            raise UploadError("Failed to upload image to Cloudinary")

        url = resp.json().get("secure_url")
        if not url:
            raise UploadError("Cloudinary response did not include an image URL")
        return url


@lru_cache
def get_image_host() -> ImageHost:
    settings = get_settings()
    return ImageHost(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        upload_preset=settings.CLOUDINARY_UPLOAD_PRESET,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        max_bytes=settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024,
    )
