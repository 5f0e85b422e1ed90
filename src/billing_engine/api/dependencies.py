"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from billing_engine.database import init_db


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for operations that manage their own units of work."""
    _, factory = init_db()
    return factory


async def get_db_session(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly on success; anything uncommitted is rolled
    back when the session closes.
    """
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
