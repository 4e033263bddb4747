"""
Todo store.

Todos carry arbitrary, caller-supplied fields stored as one JSON column.
Ownership is assigned with ``database.users.append_todo`` inside the same
transaction.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import StorageError, ValidationError
from database.models import Todo

logger = logging.getLogger(__name__)

# Keys managed by the store; client-supplied values for them are dropped.
_RESERVED_FIELDS = {"_id"}


async def create_todo(session: AsyncSession, fields: Dict[str, Any]) -> Todo:
    """Insert a todo with the given attributes and return it (flushed)."""
    if not isinstance(fields, dict):
        raise ValidationError("Todo must be a JSON object")

    todo = Todo(
        todo_id=uuid.uuid4(),
        fields={k: v for k, v in fields.items() if k not in _RESERVED_FIELDS},
    )
    session.add(todo)
    try:
        await session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Could not create todo")
        raise StorageError(str(exc)) from exc
    return todo


def serialize_todo(todo: Todo) -> Dict[str, Any]:
    return {"_id": str(todo.todo_id), **(todo.fields or {})}
