"""
Role and profile lookup for an authenticated identity.

Missing rows and store failures both resolve to None: the absence of a role
or profile is itself a state the callers display ("no role yet").
"""

import asyncio
from typing import Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from followup.database import run_in_session
from followup.enums import Role
from followup.models.user import Profile, UserPermission, UserRole
from followup.schemas.auth import ProfileOut

logger = structlog.get_logger(__name__)


class ProfileDirectory(Protocol):
    async def fetch_role(self, user_id: str) -> Optional[Role]:
        ...

    async def fetch_profile(self, user_id: str) -> Optional[ProfileOut]:
        ...


class StoreProfileDirectory:
    """ProfileDirectory backed by the `user_roles` and `profiles` tables."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def fetch_role(self, user_id: str) -> Optional[Role]:
        value = await run_in_session(self._session_factory, _select_role, user_id)
        role = Role.parse(value)
        if value is not None and role is None:
            logger.warning("identity.unknown_role", user_id=user_id, role=value)
        return role

    async def fetch_profile(self, user_id: str) -> Optional[ProfileOut]:
        return await run_in_session(self._session_factory, _select_profile, user_id)


async def _select_role(db: AsyncSession, user_id: str) -> Optional[str]:
    return await db.scalar(select(UserRole.role).where(UserRole.user_id == user_id))


async def _select_profile(db: AsyncSession, user_id: str) -> Optional[ProfileOut]:
    profile = await db.scalar(select(Profile).where(Profile.user_id == user_id))
    return ProfileOut.model_validate(profile) if profile else None


async def get_permissions(db: AsyncSession, user_id: str) -> list[str]:
    result = await db.execute(
        select(UserPermission.permission)
        .where(UserPermission.user_id == user_id)
        .order_by(UserPermission.permission)
    )
    return [p for (p,) in result.all()]


async def fetch_role_and_profile(
    directory: ProfileDirectory, user_id: str
) -> tuple[Optional[Role], Optional[ProfileOut]]:
    """Fetch both concurrently; a failed half comes back as None, never raises."""
    role, profile = await asyncio.gather(
        directory.fetch_role(user_id),
        directory.fetch_profile(user_id),
        return_exceptions=True,
    )
    if isinstance(role, Exception):
        logger.warning("identity.role_fetch_failed", user_id=user_id, error=str(role))
        role = None
    if isinstance(profile, Exception):
        logger.warning("identity.profile_fetch_failed", user_id=user_id, error=str(profile))
        profile = None
    return role, profile
