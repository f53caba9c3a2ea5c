"""Todo service tests — owner scoping without HTTP.

Learn: The service takes owner_id explicitly, so isolation can be
checked directly: seed rows for two owners, then act as each one.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from todoapi.db.models import Todo
from todoapi.services.todo_service import TodoService, UnauthenticatedError


@pytest.fixture
async def seeded(db_session):
    """Two todos for user-1, one for user-2, one orphan with no owner."""
    db_session.add_all(
        [
            Todo(name="Task 1 from user-1", owner_id="user-1"),
            Todo(name="Task 2 from user-1", owner_id="user-1"),
            Todo(name="Task 1 from user-2", owner_id="user-2"),
            Todo(name="Legacy task", owner_id=None),
        ]
    )
    await db_session.commit()
    rows = (await db_session.execute(select(Todo).order_by(Todo.id))).scalars().all()
    return {t.name: t.id for t in rows}


async def _count(db_session) -> int:
    return (await db_session.execute(select(func.count(Todo.id)))).scalar_one()


# ═══════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_returns_only_owner_todos(db_session, seeded):
    todos = await TodoService(db_session).list_for_owner("user-1")
    assert len(todos) == 2
    assert all(t.owner_id == "user-1" for t in todos)


@pytest.mark.asyncio
async def test_list_is_in_creation_order(db_session, seeded):
    todos = await TodoService(db_session).list_for_owner("user-1")
    assert [t.name for t in todos] == ["Task 1 from user-1", "Task 2 from user-1"]


@pytest.mark.asyncio
async def test_list_for_unknown_owner_is_empty(db_session, seeded):
    assert await TodoService(db_session).list_for_owner("user-3") == []


@pytest.mark.asyncio
async def test_get_returns_owned_todo(db_session, seeded):
    todo_id = seeded["Task 1 from user-1"]
    todo = await TodoService(db_session).get_for_owner("user-1", todo_id)
    assert todo is not None
    assert todo.id == todo_id
    assert todo.owner_id == "user-1"


@pytest.mark.asyncio
async def test_foreign_todo_looks_like_missing_todo(db_session, seeded):
    svc = TodoService(db_session)
    foreign = await svc.get_for_owner("user-1", seeded["Task 1 from user-2"])
    missing = await svc.get_for_owner("user-1", 9999)
    assert foreign is None
    assert missing is None


@pytest.mark.asyncio
async def test_orphan_todo_is_unreachable(db_session, seeded):
    svc = TodoService(db_session)
    orphan_id = seeded["Legacy task"]
    for owner in ("user-1", "user-2"):
        assert await svc.get_for_owner(owner, orphan_id) is None
        assert orphan_id not in [t.id for t in await svc.list_for_owner(owner)]
        assert not await svc.update(owner, orphan_id, "claimed", True)
        assert not await svc.delete(owner, orphan_id)


# ═══════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_stamps_owner(db_session):
    svc = TodoService(db_session)
    todo = await svc.create("user-1", "New task")

    assert todo.id is not None
    assert todo.owner_id == "user-1"
    assert todo.name == "New task"
    assert todo.is_complete is False

    stored = await db_session.get(Todo, todo.id)
    assert stored.owner_id == "user-1"


@pytest.mark.asyncio
async def test_create_assigns_increasing_ids(db_session):
    svc = TodoService(db_session)
    first = await svc.create("user-1", "first")
    second = await svc.create("user-2", "second")
    assert second.id > first.id


@pytest.mark.asyncio
async def test_create_honors_is_complete(db_session):
    todo = await TodoService(db_session).create("user-1", "Already done", is_complete=True)
    assert todo.is_complete is True


@pytest.mark.asyncio
@pytest.mark.parametrize("owner", ["", None])
async def test_create_without_owner_fails(db_session, owner):
    with pytest.raises(UnauthenticatedError):
        await TodoService(db_session).create(owner, "Nobody's task")
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_other_operations_without_owner_fail(db_session, seeded):
    svc = TodoService(db_session)
    todo_id = seeded["Task 1 from user-1"]
    with pytest.raises(UnauthenticatedError):
        await svc.list_for_owner("")
    with pytest.raises(UnauthenticatedError):
        await svc.get_for_owner("", todo_id)
    with pytest.raises(UnauthenticatedError):
        await svc.update("", todo_id, "x", True)
    with pytest.raises(UnauthenticatedError):
        await svc.delete("", todo_id)


# ═══════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_replaces_name_and_flag(db_session, seeded):
    svc = TodoService(db_session)
    todo_id = seeded["Task 1 from user-1"]

    assert await svc.update("user-1", todo_id, "Updated task", True)

    todo = await svc.get_for_owner("user-1", todo_id)
    assert todo.name == "Updated task"
    assert todo.is_complete is True
    assert todo.owner_id == "user-1"


@pytest.mark.asyncio
async def test_update_foreign_todo_is_not_found_and_unchanged(db_session, seeded):
    svc = TodoService(db_session)
    todo_id = seeded["Task 1 from user-2"]

    assert not await svc.update("user-1", todo_id, "Hijacked", True)

    todo = await svc.get_for_owner("user-2", todo_id)
    assert todo.name == "Task 1 from user-2"
    assert todo.is_complete is False
    assert todo.owner_id == "user-2"


@pytest.mark.asyncio
async def test_update_missing_todo_is_not_found(db_session, seeded):
    assert not await TodoService(db_session).update("user-1", 9999, "x", False)
    assert await _count(db_session) == 4


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_delete_own_todo(db_session, seeded):
    svc = TodoService(db_session)
    todo_id = seeded["Task 1 from user-1"]

    assert await svc.delete("user-1", todo_id)
    assert await svc.get_for_owner("user-1", todo_id) is None
    assert await _count(db_session) == 3


@pytest.mark.asyncio
async def test_delete_foreign_todo_is_not_found(db_session, seeded):
    svc = TodoService(db_session)
    todo_id = seeded["Task 1 from user-2"]

    assert not await svc.delete("user-1", todo_id)
    assert await svc.get_for_owner("user-2", todo_id) is not None


@pytest.mark.asyncio
async def test_update_after_delete_does_not_resurrect(db_session, seeded):
    svc = TodoService(db_session)
    todo_id = seeded["Task 2 from user-1"]

    assert await svc.delete("user-1", todo_id)
    assert not await svc.update("user-1", todo_id, "Back from the dead", False)
    assert await svc.get_for_owner("user-1", todo_id) is None


# ═══════════════════════════════════════════════════════════
# Concurrent writers
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("update_first", [True, False])
async def test_concurrent_update_and_delete_never_resurrect(
    session_factory, seeded, update_first
):
    """An update racing a delete on the same id ends with the row gone.

    Two sessions, as two requests would have. Both sessions stay open
    until both writes have committed.
    """
    todo_id = seeded["Task 1 from user-1"]

    async with session_factory() as s1, session_factory() as s2:
        update = TodoService(s1).update("user-1", todo_id, "Late edit", True)
        delete = TodoService(s2).delete("user-1", todo_id)
        if update_first:
            updated, deleted = await asyncio.gather(update, delete)
        else:
            deleted, updated = await asyncio.gather(delete, update)

    assert deleted is True
    assert isinstance(updated, bool)

    async with session_factory() as check:
        assert await check.get(Todo, todo_id) is None
        assert await _count(check) == 3


@pytest.mark.asyncio
async def test_concurrent_updates_last_writer_wins(session_factory, seeded):
    todo_id = seeded["Task 1 from user-1"]

    async with session_factory() as s1, session_factory() as s2:
        results = await asyncio.gather(
            TodoService(s1).update("user-1", todo_id, "First", False),
            TodoService(s2).update("user-1", todo_id, "Second", True),
        )

    assert results == [True, True]

    async with session_factory() as check:
        todo = await check.get(Todo, todo_id)
        assert (todo.name, todo.is_complete) in {("First", False), ("Second", True)}
        assert todo.owner_id == "user-1"
        assert await _count(check) == 4
