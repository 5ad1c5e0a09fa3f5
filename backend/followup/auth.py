"""
Auth module: signed session tokens, the in-process auth client that emits
auth-state events, and the FastAPI dependencies resolving the caller.

A token only proves identity (`sub`) and carries the permissions granted at
issuance (e.g. "director"). Role and profile are looked up in the store on
every resolution, so a role change applies without re-issuing tokens.
"""

import enum
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog
from fastapi import Depends, HTTPException, Request
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import async_sessionmaker

from followup.config import get_settings
from followup.database import get_session_factory
from followup.enums import Role
from followup.exceptions import NotAuthenticatedError, PanelForbiddenError
from followup.panels import Panel, authorized_panels, ensure_panel, is_director
from followup.schemas.auth import ProfileOut
from followup.services.identity_service import StoreProfileDirectory, fetch_role_and_profile

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthUser:
    id: str
    permissions: frozenset = frozenset()


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: AuthUser
    expires_at: int


class AuthEvent(str, enum.Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], None]


def create_token(user_id: str, permissions: list = None, expire_seconds: int = None) -> str:
    """Create a signed JWT for the given user id."""
    settings = get_settings()
    payload = {
        "sub": user_id,
        "permissions": sorted(permissions or []),
        "exp": int(time.time()) + (expire_seconds or settings.token_expire_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[AuthSession]:
    """Decode and validate a JWT. Returns None if invalid/expired."""
    try:
        settings = get_settings()
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])
        return AuthSession(
            access_token=token,
            user=AuthUser(id=payload["sub"], permissions=frozenset(payload.get("permissions", []))),
            expires_at=payload["exp"],
        )
    except (JWTError, KeyError):
        return None


class Subscription:
    def __init__(self, client: "TokenAuthClient", listener: AuthListener):
        self._client = client
        self._listener = listener

    def unsubscribe(self) -> None:
        self._client._listeners = [l for l in self._client._listeners if l is not self._listener]


class TokenAuthClient:
    """
    In-process auth subsystem holding at most one session.

    Listeners are called synchronously on every state change, and once with
    INITIAL_SESSION when they subscribe. A listener error is logged and does
    not reach the code that changed the state.
    """

    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._listeners: list[AuthListener] = []

    def sign_in_with_token(self, token: str) -> AuthSession:
        session = decode_token(token)
        if session is None:
            raise NotAuthenticatedError("Invalid or expired token")
        self._session = session
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def get_session(self) -> Optional[AuthSession]:
        if self._session is not None and self._session.expires_at <= time.time():
            self._session = None
        return self._session

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        self._notify(listener, AuthEvent.INITIAL_SESSION, self._session)
        return Subscription(self, listener)

    async def sign_out(self) -> None:
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT, None)

    def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            self._notify(listener, event, session)

    def _notify(self, listener: AuthListener, event: AuthEvent, session: Optional[AuthSession]) -> None:
        try:
            listener(event, session)
        except Exception as e:
            logger.error("auth.listener_error", event=event.value, error=str(e), exc_info=True)


@dataclass
class UserPrincipal:
    """Resolved identity attached to each request."""
    user_id: str
    role: Optional[Role] = None
    profile: Optional[ProfileOut] = None
    permissions: list = field(default_factory=list)

    @property
    def is_director(self) -> bool:
        return is_director(self.permissions)

    @property
    def panels(self) -> frozenset:
        return authorized_panels(self.role, director=self.is_director)

    @property
    def display_name(self) -> Optional[str]:
        return self.profile.full_name if self.profile else None


async def get_current_user(
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> UserPrincipal:
    """
    FastAPI dependency. Extracts the JWT from the Authorization header and
    resolves role and profile. Missing or invalid token -> 401.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    session = decode_token(auth_header[7:])
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    role, profile = await fetch_role_and_profile(
        StoreProfileDirectory(session_factory), session.user.id
    )
    return UserPrincipal(
        user_id=session.user.id,
        role=role,
        profile=profile,
        permissions=sorted(session.user.permissions),
    )


def require_panel(panel: Panel):
    """Dependency factory: 403 unless the caller may see `panel`."""

    async def dependency(current_user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
        try:
            ensure_panel(current_user.panels, panel)
        except PanelForbiddenError as e:
            raise HTTPException(status_code=403, detail=str(e))
        return current_user

    return dependency
