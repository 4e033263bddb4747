"""
Authentication strategies.

A strategy resolves an incoming request to a ``User`` or raises
``AuthenticationError``.  Routes pick one through
``auth.dependencies.authenticate`` so rejection happens before the handler
body runs.

  • ``LocalStrategy``  — username + password from the JSON body
  • ``BearerStrategy`` — signed token from the session cookie (or an
    ``Authorization: Bearer`` header)
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthenticationError, InvalidTokenError, ValidationError
from auth.jwt import decode_token
from auth.password import verify_password
from config.settings import config
from database import revocations, users
from database.models import User

logger = logging.getLogger(__name__)


class AuthStrategy(ABC):
    """Common contract: verify credentials carried by a request."""

    name: str = "base"

    @abstractmethod
    async def authenticate(self, request: Request, session: AsyncSession) -> User:
        ...


class LocalStrategy(AuthStrategy):
    name = "local"

    async def authenticate(self, request: Request, session: AsyncSession) -> User:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        if not isinstance(body, dict):
            raise ValidationError("Missing credentials")

        username = body.get("username")
        password = body.get("password")
        if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
            raise ValidationError("Missing credentials")

        user = await users.find_by_username(session, username)
        # Unknown user and wrong password are reported identically.
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %r", username)
            raise AuthenticationError()
        return user


class BearerStrategy(AuthStrategy):
    name = "jwt"

    @staticmethod
    def extract_token(request: Request) -> Optional[str]:
        token = request.cookies.get(config.cookie_name)
        if token:
            return token
        authorization = request.headers.get("Authorization", "")
        if authorization.startswith("Bearer "):
            return authorization[7:].strip() or None
        return None

    async def authenticate(self, request: Request, session: AsyncSession) -> User:
        token = self.extract_token(request)
        if token is None:
            raise AuthenticationError()

        try:
            claims = decode_token(token)
        except InvalidTokenError as exc:
            logger.debug("Rejected token: %s", exc)
            raise

        if config.token_revocation_enabled and await revocations.is_revoked(session, claims["jti"]):
            raise InvalidTokenError("Token revoked")

        user = await users.find_by_id(session, claims["sub"])
        if user is None:
            raise InvalidTokenError("Token subject no longer exists")

        request.state.token_claims = claims
        return user


local_strategy = LocalStrategy()
bearer_strategy = BearerStrategy()
