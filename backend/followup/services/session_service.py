"""
Session state for a single-user process (the CLI client).

`SessionState` is owned by whoever creates it and handed to readers; only the
`SessionResolver` writes to it. The resolver reacts to auth events:

- non-null session: publish user/session at once, then resolve role and
  profile on a separate task (never inside the auth callback), publish
  whichever resolved and clear `loading`;
- null session: clear user, session, role, profile and `loading`.

A resolution started for an older event, or finishing after `close()`, is
dropped without publishing.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Callable, Optional

import structlog

from followup.auth import AuthEvent, AuthSession, AuthUser, TokenAuthClient
from followup.enums import Role
from followup.panels import authorized_panels, is_director
from followup.schemas.auth import ProfileOut
from followup.services.identity_service import ProfileDirectory, fetch_role_and_profile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None
    role: Optional[Role] = None
    profile: Optional[ProfileOut] = None
    loading: bool = True

    @property
    def is_director(self) -> bool:
        return self.user is not None and is_director(self.user.permissions)

    @property
    def panels(self) -> frozenset:
        if self.user is None:
            return frozenset()
        return authorized_panels(self.role, director=self.is_director)


SessionListener = Callable[[SessionSnapshot], None]


class SessionState:
    """Single-writer, multi-reader container for the current session."""

    def __init__(self):
        self._snapshot = SessionSnapshot()
        self._listeners: list[SessionListener] = []
        self._loaded = asyncio.Event()

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def user(self) -> Optional[AuthUser]:
        return self._snapshot.user

    @property
    def session(self) -> Optional[AuthSession]:
        return self._snapshot.session

    @property
    def role(self) -> Optional[Role]:
        return self._snapshot.role

    @property
    def profile(self) -> Optional[ProfileOut]:
        return self._snapshot.profile

    @property
    def loading(self) -> bool:
        return self._snapshot.loading

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait_until_loaded(self) -> SessionSnapshot:
        await self._loaded.wait()
        return self._snapshot

    def _publish(self, **changes) -> None:
        # Writer API, reserved for SessionResolver
        self._snapshot = replace(self._snapshot, **changes)
        if not self._snapshot.loading:
            self._loaded.set()
        for listener in list(self._listeners):
            listener(self._snapshot)


class SessionResolver:
    def __init__(self, state: SessionState, auth: TokenAuthClient, directory: ProfileDirectory):
        self._state = state
        self._auth = auth
        self._directory = directory
        self._subscription = None
        self._generation = 0
        self._closed = False
        self._pending: set[asyncio.Task] = set()

    async def start(self) -> None:
        """Subscribe to auth events, then check the current session once."""
        self._subscription = self._auth.on_auth_state_change(self._on_auth_state_change)
        session = await self._auth.get_session()
        if session is None and not self._closed:
            self._state._publish(loading=False)

    async def sign_out(self) -> None:
        """Sign out, then clear the published identity whatever the auth client did."""
        try:
            await self._auth.sign_out()
        finally:
            if not self._closed:
                self._generation += 1
                self._state._publish(user=None, session=None, role=None, profile=None)

    async def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _on_auth_state_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        if self._closed:
            return
        self._generation += 1
        logger.debug("session.auth_event", auth_event=event.value, signed_in=session is not None)

        if session is None:
            self._state._publish(user=None, session=None, role=None, profile=None, loading=False)
            return

        self._state._publish(user=session.user, session=session)
        task = asyncio.get_running_loop().create_task(
            self._resolve(session.user.id, self._generation)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _resolve(self, user_id: str, generation: int) -> None:
        role, profile = await fetch_role_and_profile(self._directory, user_id)

        if self._closed or generation != self._generation:
            logger.debug("session.stale_resolution_dropped", user_id=user_id)
            return

        changes = {"loading": False}
        if role is not None:
            changes["role"] = role
        if profile is not None:
            changes["profile"] = profile
        self._state._publish(**changes)
        logger.info(
            "session.resolved",
            user_id=user_id,
            role=role.value if role else None,
            has_profile=profile is not None,
        )
