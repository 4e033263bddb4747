"""
FastAPI dependencies for authentication.

Provides ``db_session``, the ``authenticate(strategy)`` guard factory and
``require_role``; ``get_current_user`` is the bearer guard used by every
protected route.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Callable, Coroutine

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthorizationError
from auth.strategies import AuthStrategy, bearer_strategy, local_strategy
from database.models import Role, User
from database.session import get_db_session


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def authenticate(strategy: AuthStrategy) -> Callable[..., Coroutine[Any, Any, User]]:
    """
    Build a dependency that runs ``strategy`` and yields the resolved user.

    A failing strategy raises ``AuthenticationError`` so the route body
    never executes.
    """

    async def dependency(
        request: Request,
        session: AsyncSession = Depends(db_session),
    ) -> User:
        user = await strategy.authenticate(request, session)
        request.state.user = user
        request.state.username = user.username
        return user

    dependency.__name__ = f"authenticate_{strategy.name}"
    return dependency


get_current_user = authenticate(bearer_strategy)
get_login_user = authenticate(local_strategy)


def require_role(role: Role, msg_body: str | None = None) -> Callable[..., Coroutine[Any, Any, User]]:
    """Bearer guard that additionally demands ``role``; otherwise 403."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role != role:
            raise AuthorizationError(msg_body)
        return user

    dependency.__name__ = f"require_{role.value}"
    return dependency
