from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cbdra.core.config import settings


engine = create_async_engine(str(settings.DATABASE_URI), pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields a session per request and closes it afterwards.
    """
    async with SessionLocal() as session:
        yield session
