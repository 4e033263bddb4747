"""
Auth API routes — register, login, logout, authenticated.

Mounted at ``config.api_prefix`` (root by default).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import StorageError, message
from auth.dependencies import db_session, get_current_user, get_login_user
from auth.jwt import create_token
from auth.models import Role, User
from config.settings import config
from database import revocations
from database.users import create_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=72)
    role: Role = Role.USER


class UserInfo(BaseModel):
    username: str
    role: str


class AuthStatus(BaseModel):
    isAuthenticated: bool
    user: UserInfo


def _user_info(user: User) -> Dict[str, str]:
    return {"username": user.username, "role": user.role.value}


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        config.cookie_name,
        token,
        max_age=config.jwt_expiry_seconds,
        httponly=True,
        samesite=config.cookie_samesite,
        secure=config.cookie_secure,
    )


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Register a new user."""
    await create_user(session, req.username, req.password, req.role)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.exception("Commit failed while registering %r", req.username)
        raise StorageError(str(exc)) from exc
    return message("Account successfully created!")


@router.post("/login", response_model=AuthStatus)
async def login(
    response: Response,
    user: User = Depends(get_login_user),
) -> Dict[str, Any]:
    """Login with username + password; the token travels in an HttpOnly cookie."""
    token = create_token(str(user.user_id))
    _set_session_cookie(response, token)
    logger.info("Login: %s (%s)", user.username, user.user_id)
    return {"isAuthenticated": True, "user": _user_info(user)}


@router.get("/logout")
async def logout(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Clear the session cookie and, when enabled, denylist the token."""
    if config.token_revocation_enabled:
        claims = request.state.token_claims
        await revocations.revoke(
            session,
            claims["jti"],
            datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
        try:
            await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Commit failed while logging out %s", user.user_id)
            raise StorageError(str(exc)) from exc

    response.delete_cookie(
        config.cookie_name,
        httponly=True,
        samesite=config.cookie_samesite,
        secure=config.cookie_secure,
    )
    logger.info("Logout: %s (%s)", user.username, user.user_id)
    return {"user": {"username": "", "role": ""}, "success": True}


@router.get("/authenticated", response_model=AuthStatus)
async def authenticated(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    """Echo the identity behind the current session token."""
    return {"isAuthenticated": True, "user": _user_info(user)}
