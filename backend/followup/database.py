from typing import AsyncGenerator, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from followup.config import get_settings

T = TypeVar("T")

settings = get_settings()

engine = create_async_engine(settings.database_url, echo=settings.database_echo)
async_session = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """
    FastAPI dependency for handlers that fan out concurrent reads.
    A single AsyncSession cannot run statements concurrently, so each
    concurrent read opens its own session from this factory.
    """
    return async_session


async def run_in_session(
    session_factory: async_sessionmaker,
    func: Callable[..., Awaitable[T]],
    *args,
    **kwargs,
) -> T:
    """Run `func(db, *args, **kwargs)` on a fresh session and close it afterwards."""
    async with session_factory() as db:
        return await func(db, *args, **kwargs)
