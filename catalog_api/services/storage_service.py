"""
Object storage for product images.

Two providers share one contract, ``upload(content, content_type, filename)``
returning a public URL:

- CloudinaryStorage: signed upload to the Cloudinary REST API over httpx
- LocalStorage: writes under MEDIA_ROOT, served by the app at /media

Provider failures surface as DependencyError so the product pipeline can
fail the request instead of saving a product without its image.
"""
import hashlib
import logging
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import httpx

from catalog_api.config import Settings, settings
from catalog_api.exceptions import DependencyError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}


class StorageService:
    """Contract for object storage providers."""

    async def upload(
        self,
        content: bytes,
        content_type: str,
        filename: Optional[str] = None
    ) -> str:
        raise NotImplementedError


class CloudinaryStorage(StorageService):
    """
    Cloudinary upload API client.

    Usage:
        storage = CloudinaryStorage("demo", "key", "secret")
        url = await storage.upload(data, "image/png", "widget.png")
    """

    API_BASE = "https://api.cloudinary.com/v1_1"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self._transport = transport

    @property
    def upload_url(self) -> str:
        return f"{self.API_BASE}/{self.cloud_name}/image/upload"

    def sign(self, params: dict) -> str:
        """SHA-1 over the sorted ``key=value`` pairs followed by the API secret."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    async def upload(
        self,
        content: bytes,
        content_type: str,
        filename: Optional[str] = None
    ) -> str:
        params = {"timestamp": str(int(time.time()))}
        if self.folder:
            params["folder"] = self.folder
        data = {**params, "api_key": self.api_key, "signature": self.sign(params)}
        files = {"file": (filename or "upload", content, content_type)}

        logger.info("Uploading %d bytes (%s) to Cloudinary cloud '%s'", len(content), content_type, self.cloud_name)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.upload_url, data=data, files=files)
            response.raise_for_status()
            url = response.json()["secure_url"]
        except httpx.TimeoutException as e:
            logger.error("Cloudinary upload timed out: %s", e)
            raise DependencyError("Image upload timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error("Cloudinary upload rejected with status %s", e.response.status_code)
            raise DependencyError(f"Image upload failed: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Cloudinary upload failed: %s", e)
            raise DependencyError(f"Image upload failed: {e}") from e
        except (KeyError, ValueError) as e:
            logger.error("Cloudinary returned an unexpected body: %s", e)
            raise DependencyError("Image upload failed: malformed provider response") from e

        logger.info("Image uploaded: %s", url)
        return url


class LocalStorage(StorageService):
    """Stores images on the local filesystem. Meant for development."""

    def __init__(self, media_root: str, public_base_url: str):
        self.media_root = Path(media_root)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload(
        self,
        content: bytes,
        content_type: str,
        filename: Optional[str] = None
    ) -> str:
        name = f"{uuid.uuid4().hex}{IMAGE_EXTENSIONS.get(content_type, '.bin')}"
        path = self.media_root / name
        try:
            self.media_root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Could not write image to %s: %s", path, e)
            raise DependencyError(f"Image upload failed: {e}") from e

        logger.info("Image stored at %s", path)
        return f"{self.public_base_url}/media/{name}"


def build_storage(config: Settings) -> StorageService:
    """Build the provider selected by STORAGE_BACKEND."""
    backend = config.storage_backend.lower()
    if backend == "local":
        return LocalStorage(config.media_root, config.public_base_url)
    if backend == "cloudinary":
        return CloudinaryStorage(
            cloud_name=config.cloudinary_cloud_name or "",
            api_key=config.cloudinary_api_key or "",
            api_secret=config.cloudinary_api_secret or "",
            folder=config.cloudinary_folder,
            timeout=config.upload_timeout_seconds,
        )
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


# Singleton instance
_storage_service: Optional[StorageService] = None


def get_storage() -> StorageService:
    """FastAPI dependency returning the process-wide storage provider."""
    global _storage_service
    if _storage_service is None:
        _storage_service = build_storage(settings)
    return _storage_service
