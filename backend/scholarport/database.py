"""
Database Connection and Initialization
"""
import json
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from scholarport.config import settings

logger = logging.getLogger(__name__)


def _json_serializer(value) -> str:
    # Keep non-ASCII author names searchable as text
    return json.dumps(value, ensure_ascii=False)


def _engine_options() -> dict:
    options = {
        "echo": settings.debug,
        "json_serializer": _json_serializer,
    }
    if not settings.uses_sqlite:
        options.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


async def get_db():
    """Dependency for getting database session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Initialize database tables."""
    async with engine.begin() as conn:
        # Import models to register them
        from scholarport.models import article, citation  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")
