import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("CLINIC_TIMEZONE", "UTC")

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

import followup.models  # noqa: E402,F401
from followup.auth import create_token  # noqa: E402
from followup.database import Base, get_db, get_session_factory  # noqa: E402
from followup.main import app  # noqa: E402
from followup.models import Profile, UserPermission, UserRole  # noqa: E402

from factories import STAFF  # noqa: E402


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def staff(session_factory):
    """Profiles, roles and permissions for the test users; returns their tokens."""
    async with session_factory() as session:
        for user_id, full_name, role, permissions in STAFF:
            session.add(Profile(user_id=user_id, full_name=full_name))
            if role:
                session.add(UserRole(user_id=user_id, role=role))
            for permission in permissions:
                session.add(UserPermission(user_id=user_id, permission=permission))
        await session.commit()
    return {user_id: create_token(user_id, permissions) for user_id, _, _, permissions in STAFF}


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def add_rows(session_factory):
    """Insert ORM objects in one committed transaction."""

    async def _add(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows

    return _add

