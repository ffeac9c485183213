import logging
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from catalog_api.config import settings
from catalog_api.exceptions import DependencyError

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


if engine.dialect.name == "sqlite":
    # SQLite ignores ON DELETE SET NULL and dangling category ids unless
    # foreign keys are switched on for each connection
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def get_db():
    """Yield a request-scoped session."""
    async with async_session() as session:
        yield session


async def init_models() -> None:
    """Create missing tables. There are no migrations, the models are the schema."""
    # Register the mappers on Base.metadata before create_all
    import catalog_api.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def translate_db_errors(session: AsyncSession, action: str):
    """Roll back and re-raise database failures as DependencyError."""
    try:
        yield
    except SQLAlchemyError as e:
        await session.rollback()
        reason = getattr(e, "orig", None) or e
        logger.error("Database error while %s: %s", action, reason)
        raise DependencyError(str(reason)) from e
