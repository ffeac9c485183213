from datetime import datetime, timezone
from typing import Any, Dict, Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from catalog_api.database import translate_db_errors
from catalog_api.models.product import Product


class ProductService:
    """Service for product CRUD operations."""

    @staticmethod
    async def create_product(
        session: AsyncSession,
        name: str,
        price: float,
        product_image: Optional[str] = None,
        category_id: Optional[str] = None
    ) -> Product:
        """Create a product.

        The name is stored lower-cased and the expiry date is stamped to now.
        Neither happens again on update.
        """
        product = Product(
            name=name.lower(),
            price=price,
            product_image=product_image,
            expiry_date=datetime.now(timezone.utc),
            category_id=category_id,
        )
        async with translate_db_errors(session, "creating product"):
            session.add(product)
            await session.commit()
            await session.refresh(product)
        return product

    @staticmethod
    async def get_product(session: AsyncSession, product_id: str) -> Optional[Product]:
        """Get a product by ID."""
        async with translate_db_errors(session, "fetching product"):
            result = await session.execute(
                select(Product).where(Product.id == product_id)
            )
            return result.scalar_one_or_none()

    @staticmethod
    async def list_products(session: AsyncSession) -> List[Product]:
        """List all products, most recent first."""
        async with translate_db_errors(session, "listing products"):
            result = await session.execute(
                select(Product).order_by(Product.created_at.desc())
            )
            return list(result.scalars().all())

    @staticmethod
    async def update_product(
        session: AsyncSession,
        product: Product,
        changes: Dict[str, Any]
    ) -> Product:
        """Apply changes to a loaded product."""
        for key, value in changes.items():
            setattr(product, key, value)

        async with translate_db_errors(session, "updating product"):
            await session.commit()
            await session.refresh(product)
        return product

    @staticmethod
    async def delete_product(session: AsyncSession, product_id: str) -> int:
        """Delete a product. Returns the number of rows affected."""
        async with translate_db_errors(session, "deleting product"):
            result = await session.execute(
                delete(Product).where(Product.id == product_id)
            )
            await session.commit()
        return result.rowcount or 0
