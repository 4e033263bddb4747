"""
REST API routes — todos and role-gated admin check.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import StorageError, ValidationError, message
from auth.dependencies import db_session, get_current_user, require_role
from database.models import Role, User
from database.todos import create_todo, serialize_todo
from database.users import append_todo, find_by_id_with_todos

logger = logging.getLogger(__name__)

router = APIRouter(tags=["todos"])


@router.post("/todo")
async def add_todo(
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """
    Create a todo from the raw JSON body and append it to the caller's list.

    Both writes share one transaction, so a failure leaves no orphan todo.
    """
    try:
        fields = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Todo must be a JSON object") from exc

    todo = await create_todo(session, fields)
    await append_todo(session, user.user_id, todo.todo_id)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        logger.exception("Commit failed while adding todo for %s", user.user_id)
        raise StorageError(str(exc)) from exc

    logger.info("Todo %s created for %s", todo.todo_id, user.username)
    return message("Successfully created!")


@router.get("/todos")
async def list_todos(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Return the caller's todos in creation order."""
    owner = await find_by_id_with_todos(session, user.user_id)
    return {
        "todos": [serialize_todo(todo) for todo in owner.todos],
        "authenticated": True,
    }


@router.get("/admin")
async def admin(
    user: User = Depends(require_role(Role.ADMIN, "You are not an admin! Go Away!")),
) -> Dict[str, Any]:
    return message("You are an admin!")
