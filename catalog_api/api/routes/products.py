from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List, Optional
from catalog_api import messages
from catalog_api.database import get_db
from catalog_api.exceptions import NotFoundError
from catalog_api.schemas.base import MessageResponse
from catalog_api.schemas.product import ProductResponse
from catalog_api.services.image_ingestion import ingest_product_image
from catalog_api.services.product_service import ProductService
from catalog_api.validation import (
    PRODUCT_CREATE_RULES,
    PRODUCT_UPDATE_RULES,
    validate_or_raise,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

PRODUCT_FORM_FIELDS = ("name", "price", "categoryId")


async def read_product_form(request: Request) -> Dict[str, str]:
    """Text fields of the product form, exactly as sent.

    Form() parameters would turn an empty field into None, which makes
    ``name=""`` look absent. Here a missing field is left out of the mapping
    and an empty one is kept as "".
    """
    form = await request.form()
    return {
        key: value
        for key, value in form.items()
        if key in PRODUCT_FORM_FIELDS and isinstance(value, str)
    }


@router.get("", response_model=List[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)):
    """List products, most recent first."""
    products = await ProductService.list_products(db)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a single product by ID."""
    product = await ProductService.get_product(db, product_id)
    if not product:
        raise NotFoundError(messages.PRODUCT_NOT_FOUND)
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    image_url: Optional[str] = Depends(ingest_product_image),
    fields: Dict[str, str] = Depends(read_product_form),
    db: AsyncSession = Depends(get_db)
):
    """Create a product from a multipart form.

    The image, if any, is uploaded before the fields are validated, so an
    upload failure aborts the request before anything is persisted.
    """
    validate_or_raise(PRODUCT_CREATE_RULES, fields)

    product = await ProductService.create_product(
        db,
        name=fields["name"],
        price=float(fields["price"]),
        product_image=image_url,
        category_id=fields.get("categoryId") or None,
    )
    logger.info("Product %s created (image=%s)", product.id, image_url)
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    image_url: Optional[str] = Depends(ingest_product_image),
    fields: Dict[str, str] = Depends(read_product_form),
    db: AsyncSession = Depends(get_db)
):
    """Partially update a product. Only the fields present are validated."""
    validate_or_raise(PRODUCT_UPDATE_RULES, fields)

    product = await ProductService.get_product(db, product_id)
    if not product:
        raise NotFoundError(messages.PRODUCT_NOT_FOUND)

    changes = {}
    if "name" in fields:
        changes["name"] = fields["name"]
    if "price" in fields:
        changes["price"] = float(fields["price"])
    if "categoryId" in fields:
        # An empty categoryId detaches the product
        changes["category_id"] = fields["categoryId"] or None
    if image_url:
        changes["product_image"] = image_url
    else:
        logger.info("No new image for product %s, keeping the current one", product_id)

    product = await ProductService.update_product(db, product, changes)
    logger.info("Product %s updated with %s", product_id, sorted(changes))
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Delete a product. The stored image is left in the object store."""
    deleted = await ProductService.delete_product(db, product_id)
    if not deleted:
        raise NotFoundError(messages.PRODUCT_NOT_FOUND)
    logger.info("Product %s deleted", product_id)
    return MessageResponse(message=messages.PRODUCT_DELETED)
