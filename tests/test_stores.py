"""
Tests for the credential, todo and revocation stores.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from api.errors import NotFoundError, ValidationError
from database import revocations
from database.models import Role, Todo, User
from database.todos import create_todo, serialize_todo
from database.users import (
    append_todo,
    create_user,
    find_by_id,
    find_by_id_with_todos,
    find_by_username,
)


class TestCredentialStore:
    @pytest.mark.asyncio
    async def test_create_and_find(self, session):
        user = await create_user(session, "alice", "pw", Role.ADMIN)
        await session.commit()

        found = await find_by_username(session, "alice")
        assert found is not None
        assert found.user_id == user.user_id
        assert found.role is Role.ADMIN
        assert found.password_hash != "pw"

    @pytest.mark.asyncio
    async def test_lookup_is_case_sensitive(self, session):
        await create_user(session, "Alice", "pw")
        await session.commit()
        assert await find_by_username(session, "alice") is None
        assert await find_by_username(session, "Alice") is not None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, session):
        await create_user(session, "bob", "pw")
        await session.commit()

        with pytest.raises(ValidationError, match="already in use"):
            await create_user(session, "bob", "other")

        count = await session.execute(select(func.count()).select_from(User))
        assert count.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_missing_fields(self, session):
        with pytest.raises(ValidationError):
            await create_user(session, "", "pw")
        with pytest.raises(ValidationError):
            await create_user(session, "carol", "")

    @pytest.mark.asyncio
    async def test_unknown_role(self, session):
        with pytest.raises(ValidationError):
            await create_user(session, "dave", "pw", "superuser")

    @pytest.mark.asyncio
    async def test_find_by_id_tolerates_malformed_ids(self, session):
        assert await find_by_id(session, "not-a-uuid") is None
        assert await find_by_id(session, uuid.uuid4()) is None


class TestTodoOwnership:
    @pytest.mark.asyncio
    async def test_todos_listed_in_creation_order(self, session):
        user = await create_user(session, "erin", "pw")
        for title in ("first", "second", "third"):
            todo = await create_todo(session, {"name": title})
            await append_todo(session, user.user_id, todo.todo_id)
        await session.commit()

        loaded = await find_by_id_with_todos(session, str(user.user_id))
        assert [t.fields["name"] for t in loaded.todos] == ["first", "second", "third"]
        assert all(t.owner_id == user.user_id for t in loaded.todos)

    @pytest.mark.asyncio
    async def test_new_user_has_no_todos(self, session):
        user = await create_user(session, "frank", "pw")
        await session.commit()
        loaded = await find_by_id_with_todos(session, user.user_id)
        assert loaded.todos == []

    @pytest.mark.asyncio
    async def test_append_to_missing_user(self, session):
        todo = await create_todo(session, {"name": "orphan?"})
        with pytest.raises(NotFoundError):
            await append_todo(session, uuid.uuid4(), todo.todo_id)

    @pytest.mark.asyncio
    async def test_equal_positions_fall_back_to_creation_time(self, session):
        user = await create_user(session, "gina", "pw")
        now = datetime.now(timezone.utc)
        # Inserted newest-first; both claim position 0.
        session.add(Todo(owner_id=user.user_id, position=0, fields={"name": "later"},
                         created_at=now + timedelta(seconds=1)))
        session.add(Todo(owner_id=user.user_id, position=0, fields={"name": "earlier"},
                         created_at=now))
        await session.commit()

        loaded = await find_by_id_with_todos(session, user.user_id)
        assert [t.fields["name"] for t in loaded.todos] == ["earlier", "later"]

    @pytest.mark.asyncio
    async def test_load_missing_user(self, session):
        with pytest.raises(NotFoundError):
            await find_by_id_with_todos(session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_todo_must_be_object(self, session):
        with pytest.raises(ValidationError):
            await create_todo(session, ["not", "an", "object"])

    @pytest.mark.asyncio
    async def test_serialize_ignores_client_id(self, session):
        todo = await create_todo(session, {"_id": "spoofed", "name": "x"})
        data = serialize_todo(todo)
        assert data["_id"] == str(todo.todo_id)
        assert data["name"] == "x"

    @pytest.mark.asyncio
    async def test_uncommitted_todo_rolls_back_with_owner_step(self, session):
        await create_todo(session, {"name": "pending"})
        await session.rollback()
        count = await session.execute(select(func.count()).select_from(Todo))
        assert count.scalar_one() == 0


class TestRevocations:
    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, session):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        await revocations.revoke(session, "jti-1", exp)
        await revocations.revoke(session, "jti-1", exp)
        await session.commit()
        assert await revocations.is_revoked(session, "jti-1")
        assert not await revocations.is_revoked(session, "jti-2")

    @pytest.mark.asyncio
    async def test_purge_expired(self, session):
        now = datetime.now(timezone.utc)
        await revocations.revoke(session, "old", now - timedelta(minutes=5))
        await revocations.revoke(session, "live", now + timedelta(minutes=5))
        await session.commit()

        removed = await revocations.purge_expired(session)
        await session.commit()

        assert removed == 1
        assert not await revocations.is_revoked(session, "old")
        assert await revocations.is_revoked(session, "live")
