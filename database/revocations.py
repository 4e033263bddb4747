"""
Denylist of logged-out token ids.

A token stays valid until its ``exp`` unless its ``jti`` is recorded here.
Rows are useless after the token's own expiry and are purged on startup.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import StorageError
from database.models import RevokedToken
from database.session import async_session_factory

logger = logging.getLogger(__name__)


async def revoke(session: AsyncSession, jti: str, expires_at: datetime) -> None:
    """Record ``jti`` as revoked (idempotent)."""
    try:
        if await session.get(RevokedToken, jti) is None:
            session.add(RevokedToken(jti=jti, expires_at=expires_at))
            await session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Could not revoke token %s", jti)
        raise StorageError(str(exc)) from exc


async def is_revoked(session: AsyncSession, jti: str) -> bool:
    try:
        result = await session.execute(
            select(RevokedToken.jti).where(RevokedToken.jti == jti)
        )
    except SQLAlchemyError as exc:
        logger.exception("Revocation lookup failed for %s", jti)
        raise StorageError(str(exc)) from exc
    return result.scalar_one_or_none() is not None


async def purge_expired(session: AsyncSession | None = None) -> int:
    """
    Delete denylist rows whose token has expired anyway.

    Uses an independent session when none is given (startup cleanup).
    Returns the number of rows removed.
    """
    if session is None:
        async with async_session_factory() as own_session:
            removed = await purge_expired(own_session)
            await own_session.commit()
            return removed

    result = await session.execute(
        delete(RevokedToken).where(RevokedToken.expires_at < datetime.now(timezone.utc))
    )
    if result.rowcount:
        logger.info("Purged %d expired revoked tokens", result.rowcount)
    return result.rowcount
