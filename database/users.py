"""
Credential store — user records and todo ownership.

All functions take the request's ``AsyncSession`` and only ``flush``; the
caller decides when to commit so several store calls can share one
transaction.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.errors import NotFoundError, StorageError, ValidationError
from auth.password import MAX_PASSWORD_BYTES, hash_password
from database.models import Role, Todo, User

logger = logging.getLogger(__name__)


def _to_uuid(value: str | uuid.UUID) -> uuid.UUID:
    try:
        return uuid.UUID(value) if isinstance(value, str) else value
    except ValueError as exc:
        raise NotFoundError(f"Malformed id {value!r}") from exc


async def find_by_username(session: AsyncSession, username: str) -> Optional[User]:
    """Exact, case-sensitive lookup."""
    try:
        result = await session.execute(select(User).where(User.username == username))
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed for %r", username)
        raise StorageError(str(exc)) from exc
    return result.scalar_one_or_none()


async def find_by_id(session: AsyncSession, user_id: str | uuid.UUID) -> Optional[User]:
    try:
        uid = _to_uuid(user_id)
    except NotFoundError:
        return None
    try:
        return await session.get(User, uid)
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed for %s", user_id)
        raise StorageError(str(exc)) from exc


async def create_user(
    session: AsyncSession,
    username: str,
    password: str,
    role: Role = Role.USER,
) -> User:
    """
    Insert a new user with a bcrypt-hashed password.

    Duplicate usernames are detected by the table's unique constraint, not
    by a prior lookup, so concurrent registrations cannot both succeed.
    """
    if not username or not username.strip():
        raise ValidationError("Username is required")
    if not password:
        raise ValidationError("Password is required")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")
    try:
        role = Role(role)
    except ValueError as exc:
        raise ValidationError(f"Unknown role {role!r}") from exc

    user = User(
        user_id=uuid.uuid4(),
        username=username,
        password_hash=hash_password(password),
        role=role,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise ValidationError("Username already in use!") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Could not create user %r", username)
        raise StorageError(str(exc)) from exc

    logger.info("Registered user %s (%s, role=%s)", username, user.user_id, user.role.value)
    return user


async def append_todo(
    session: AsyncSession,
    user_id: str | uuid.UUID,
    todo_id: str | uuid.UUID,
) -> None:
    """Make ``user_id`` the owner of ``todo_id``, placing it last in the list."""
    uid = _to_uuid(user_id)
    try:
        user = await session.get(User, uid)
        if user is None:
            raise NotFoundError(f"User {uid} not found")
        todo = await session.get(Todo, _to_uuid(todo_id))
        if todo is None:
            raise NotFoundError(f"Todo {todo_id} not found")

        result = await session.execute(
            select(func.count()).select_from(Todo).where(
                Todo.owner_id == uid, Todo.todo_id != todo.todo_id,
            )
        )
        todo.owner_id = uid
        todo.position = result.scalar_one()
        await session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Could not append todo %s to user %s", todo_id, uid)
        raise StorageError(str(exc)) from exc


async def find_by_id_with_todos(session: AsyncSession, user_id: str | uuid.UUID) -> User:
    """Load a user with its todos resolved, in insertion order."""
    uid = _to_uuid(user_id)
    try:
        result = await session.execute(
            select(User)
            .where(User.user_id == uid)
            .options(selectinload(User.todos))
            .execution_options(populate_existing=True)
        )
    except SQLAlchemyError as exc:
        logger.exception("Could not load todos for user %s", uid)
        raise StorageError(str(exc)) from exc

    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"User {uid} not found")
    return user
