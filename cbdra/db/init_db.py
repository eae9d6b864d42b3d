import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from cbdra.core.config import settings
from cbdra.core.security import get_password_hash
from cbdra.db.base_class import Base
from cbdra.models import User, UserRole

# Importing the models registers every table on Base.metadata
from cbdra.models import Incident, IncidentResponse, Notification, ResourceAllocation  # noqa: F401

logger = logging.getLogger("cbdra.db")


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables initialized")


async def create_initial_data(session: AsyncSession) -> None:
    """Create the first administrator when FIRST_ADMIN_PASSWORD is configured."""
    if not settings.FIRST_ADMIN_PASSWORD:
        logger.info("FIRST_ADMIN_PASSWORD not set, skipping admin seed")
        return

    result = await session.execute(
        select(User).filter(User.email == settings.FIRST_ADMIN_EMAIL.lower())
    )
    admin = result.scalars().first()

    if not admin:
        admin_user = User(
            email=settings.FIRST_ADMIN_EMAIL.lower(),
            hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            name="System Administrator",
            role=UserRole.ADMIN,
            is_active=True,
            verified=True,
            email_verified=datetime.utcnow(),
        )
        session.add(admin_user)
        await session.commit()
        logger.info(f"Admin user created: email={admin_user.email}")
