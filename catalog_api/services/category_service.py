from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.orm import selectinload
from catalog_api.database import translate_db_errors
from catalog_api.models.category import Category


class CategoryService:
    """Persistence operations for categories."""

    @staticmethod
    async def create_category(session: AsyncSession, name: str) -> Category:
        """Insert a category with a freshly generated id."""
        async with translate_db_errors(session, "creating category"):
            category = Category(name=name)
            session.add(category)
            await session.commit()
            await session.refresh(category)
        return category

    @staticmethod
    async def list_categories(session: AsyncSession) -> List[Category]:
        """List all categories, most recent first."""
        async with translate_db_errors(session, "listing categories"):
            result = await session.execute(
                select(Category).order_by(Category.created_at.desc())
            )
            return list(result.scalars().all())

    @staticmethod
    async def get_category(session: AsyncSession, category_id: str) -> Optional[Category]:
        async with translate_db_errors(session, "fetching category"):
            result = await session.execute(
                select(Category).where(Category.id == category_id)
            )
            return result.scalar_one_or_none()

    @staticmethod
    async def get_category_with_products(
        session: AsyncSession,
        category_id: str
    ) -> Optional[Category]:
        """Get a category with its products eagerly loaded."""
        async with translate_db_errors(session, "fetching category with products"):
            result = await session.execute(
                select(Category)
                .where(Category.id == category_id)
                .options(selectinload(Category.products))
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    @staticmethod
    async def update_category(session: AsyncSession, category_id: str, name: str) -> int:
        """Rename a category. Returns the number of rows affected."""
        async with translate_db_errors(session, "updating category"):
            result = await session.execute(
                update(Category)
                .where(Category.id == category_id)
                .values(name=name)
            )
            await session.commit()
        return result.rowcount or 0

    @staticmethod
    async def delete_category(session: AsyncSession, category_id: str) -> int:
        """Delete a category. Returns the number of rows affected."""
        async with translate_db_errors(session, "deleting category"):
            result = await session.execute(
                delete(Category).where(Category.id == category_id)
            )
            await session.commit()
        return result.rowcount or 0
