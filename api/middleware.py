"""
Global middleware.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def _request_user(request: Request) -> str:
    """Username resolved by an auth guard during this request, or ``-``."""
    return getattr(request.state, "username", None) or "-"


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        # Guards copy the username onto request.state; the ORM object may be
        # expired by a rollback by now.
        logger.info(
            "%s %s %d user=%s %.3fs",
            request.method, request.url.path, response.status_code,
            _request_user(request), elapsed,
        )
        return response
