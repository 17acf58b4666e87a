"""FastAPI dependencies: identity, role checks and service construction."""

from typing import Callable, Optional

import httpx
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from commission_guard.config import Settings, get_settings
from commission_guard.crud import user as crud_user
from commission_guard.db.redis_client import get_redis
from commission_guard.db.session import async_session, get_db
from commission_guard.errors import AuthenticationError, AuthorizationError
from commission_guard.models import User
from commission_guard.services.notifications import AgentNotifier
from commission_guard.services.public_records import PublicRecordsScanner


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Identity is established upstream; the gateway forwards the subject in X-User-Id."""
    if not x_user_id:
        raise AuthenticationError("Missing X-User-Id header")
    user = await crud_user.get_user(db, x_user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Unknown or inactive user")
    return user


def require_role(*roles: str) -> Callable:
    """
    Dependency factory for role-gated routes.
    Usage: `admin: User = Depends(require_role("admin"))`
    """
    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError(
                f"This action requires role: {', '.join(roles)}", agent_id=user.id
            )
        return user

    return checker


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_scanner(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> PublicRecordsScanner:
    return PublicRecordsScanner.from_settings(settings, http_client)


def get_notifier(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    redis=Depends(get_redis),
) -> AgentNotifier:
    return AgentNotifier(settings, async_session, redis, http_client)
