"""
JWT creation and verification.

Tokens are HS256 JWTs signed with ``config.jwt_secret`` (env var:
``JWT_SECRET``).  Claims: ``iss`` (``config.jwt_issuer``), ``sub`` (user id),
``iat``, ``exp`` and a random ``jti`` used by the logout denylist.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from api.errors import InvalidTokenError
from config.settings import config

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["iss", "sub", "iat", "exp", "jti"]


def create_token(user_id: str, *, now: Optional[datetime] = None) -> str:
    """Create a signed token for ``user_id`` valid for ``jwt_expiry_seconds``."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "iss": config.jwt_issuer,
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=config.jwt_expiry_seconds),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=_ALGORITHM)


def decode_token(token: str, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Verify ``token`` and return its claims.

    Expiry is checked against ``now`` (defaults to the current time) with no
    leeway.  Raises ``InvalidTokenError`` on a bad signature, a malformed
    token, a foreign issuer, missing claims or expiry.
    """
    try:
        claims = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[_ALGORITHM],
            issuer=config.jwt_issuer,
            options={"require": _REQUIRED_CLAIMS, "verify_exp": False},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(f"Invalid token: {exc}") from exc

    moment = now or datetime.now(timezone.utc)
    if moment.timestamp() >= claims["exp"]:
        raise InvalidTokenError("Token expired")
    return claims


def verify_token(token: str, *, now: Optional[datetime] = None) -> str:
    """Verify token and return the user id carried in ``sub``."""
    return decode_token(token, now=now)["sub"]
