from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from voltbuild.config import settings
from voltbuild.db.base import Base

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, pool_pre_ping=True)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_all() -> None:
    """Create any missing tables. Used when DB_AUTO_CREATE is enabled."""
    import voltbuild.db.models  # noqa: F401 - register all models on the metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
