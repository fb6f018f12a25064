"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from benefits_engine.config import Settings, get_settings
from benefits_engine.database import init_db
from benefits_engine.services.month_end import MonthEndValidator


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the application engine."""
    _, factory = init_db()
    return factory


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_db_session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_month_end_validator(factory: SessionFactory, settings: AppSettings) -> MonthEndValidator:
    """Validator that opens its own sessions per check."""
    return MonthEndValidator(factory, settings=settings)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Validator = Annotated[MonthEndValidator, Depends(get_month_end_validator)]
