import asyncio
import logging
from typing import Optional

from fastapi import Depends, File, UploadFile

from catalog_api import messages
from catalog_api.config import settings
from catalog_api.exceptions import DependencyError, UnsupportedMediaError
from catalog_api.services.storage_service import StorageService, get_storage

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/jpg")


async def store_image(
    upload: Optional[UploadFile],
    storage: StorageService,
    timeout: float
) -> Optional[str]:
    """Forward an accepted upload to object storage and return its public URL.

    Returns None when the request carried no file. Raises
    UnsupportedMediaError for types outside ALLOWED_IMAGE_TYPES, before
    anything is read or uploaded, and DependencyError when the provider
    fails or does not answer within ``timeout`` seconds.
    """
    if upload is None or not upload.filename:
        return None

    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        logger.warning("Rejected upload '%s' with type %s", upload.filename, upload.content_type)
        raise UnsupportedMediaError(messages.UNSUPPORTED_IMAGE_FORMAT)

    try:
        content = await upload.read()
        return await asyncio.wait_for(
            storage.upload(content, upload.content_type, upload.filename),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error("Image upload for '%s' timed out after %.1fs", upload.filename, timeout)
        raise DependencyError(f"Image upload timed out after {timeout:g}s") from e
    finally:
        await upload.close()


async def ingest_product_image(
    product_image: Optional[UploadFile] = File(None, alias="productImage"),
    storage: StorageService = Depends(get_storage),
) -> Optional[str]:
    """Dependency resolving the optional ``productImage`` file into a stored URL."""
    return await store_image(product_image, storage, settings.upload_timeout_seconds)
