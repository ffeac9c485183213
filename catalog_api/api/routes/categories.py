from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from catalog_api import messages
from catalog_api.database import get_db
from catalog_api.exceptions import NotFoundError
from catalog_api.schemas.base import MessageResponse
from catalog_api.schemas.category import (
    CategoryResponse,
    CategoryEnvelope,
    CategoryWithProductsEnvelope,
    CategoryWithProductsResponse,
)
from catalog_api.services.category_service import CategoryService
from catalog_api.services.email_service import (
    Mailer,
    get_mailer,
    notify_category_created,
    notify_category_updated,
)
from catalog_api.validation import CATEGORY_RULES, validate_or_raise
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List categories, most recent first."""
    categories = await CategoryService.list_categories(db)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a single category by ID."""
    category = await CategoryService.get_category(db, category_id)
    if not category:
        raise NotFoundError(messages.CATEGORY_NOT_FOUND)
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryEnvelope, status_code=201)
async def create_category(
    payload: Optional[Dict[str, Any]] = Body(None),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer)
):
    """Create a category and notify by email.

    The notification is part of the request: if it fails the client gets a
    500 even though the category has already been committed.
    """
    payload = payload or {}
    validate_or_raise(CATEGORY_RULES, payload)

    category = await CategoryService.create_category(db, str(payload["name"]))
    logger.info("Category %s created, sending notification", category.id)
    await notify_category_created(mailer, category.name)

    return CategoryEnvelope(
        message=messages.CATEGORY_CREATED,
        category=CategoryResponse.model_validate(category)
    )


@router.put("/{category_id}", response_model=CategoryWithProductsEnvelope)
async def update_category(
    category_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer)
):
    """Rename a category, notify by email and return it with its products."""
    payload = payload or {}
    validate_or_raise(CATEGORY_RULES, payload)

    updated = await CategoryService.update_category(db, category_id, str(payload["name"]))
    if not updated:
        raise NotFoundError(messages.CATEGORY_NOT_FOUND)

    category = await CategoryService.get_category_with_products(db, category_id)
    if not category:
        # Deleted by a concurrent request between the update and the re-fetch
        raise NotFoundError(messages.CATEGORY_NOT_FOUND)

    logger.info("Category %s updated, sending notification", category_id)
    await notify_category_updated(mailer, category.name)

    return CategoryWithProductsEnvelope(
        message=messages.CATEGORY_UPDATED,
        category=CategoryWithProductsResponse.model_validate(category)
    )


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Delete a category. Its products are kept with a null categoryId."""
    deleted = await CategoryService.delete_category(db, category_id)
    if not deleted:
        raise NotFoundError(messages.CATEGORY_NOT_FOUND)
    logger.info("Category %s deleted", category_id)
    return MessageResponse(message=messages.CATEGORY_DELETED)
