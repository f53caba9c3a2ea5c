"""Todo service — owner-scoped persistence for todo items.

Learn: Every method takes owner_id as an explicit argument and every
query filters on it. There is no ambient "current user" lookup here,
so the scoping is visible at each call site and testable without an
HTTP request.

The one rule that matters: a todo owned by someone else must look
exactly like a todo that does not exist. get_for_owner returns None
for both, and update/delete report False for both.

Update and delete are single conditional statements
(UPDATE/DELETE ... WHERE id = :id AND owner_id = :owner), so the
ownership check and the write happen in one transaction and a
concurrent delete cannot be undone by a late update.
"""

from typing import Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.db.models import Todo

logger = structlog.get_logger()


class UnauthenticatedError(Exception):
    """Raised when a store operation is attempted without an owner."""


def _require_owner(owner_id: Optional[str]) -> str:
    if not owner_id:
        raise UnauthenticatedError("Could not determine the user for this operation")
    return owner_id


class TodoService:
    """Business logic for todo CRUD, scoped to one owner per call."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Read ────────────────────────────────────────────

    async def list_for_owner(self, owner_id: str) -> list[Todo]:
        owner_id = _require_owner(owner_id)
        result = await self.db.execute(
            select(Todo).where(Todo.owner_id == owner_id).order_by(Todo.id)
        )
        return list(result.scalars().all())

    async def get_for_owner(self, owner_id: str, todo_id: int) -> Optional[Todo]:
        """Return the todo, or None if it is missing or not owned by owner_id."""
        owner_id = _require_owner(owner_id)
        result = await self.db.execute(
            select(Todo).where(Todo.id == todo_id, Todo.owner_id == owner_id)
        )
        return result.scalars().first()

    # ─── Write ───────────────────────────────────────────

    async def create(
        self, owner_id: str, name: str, is_complete: bool = False
    ) -> Todo:
        """Create a todo stamped with owner_id. The id is assigned by the database."""
        owner_id = _require_owner(owner_id)
        todo = Todo(name=name, is_complete=is_complete, owner_id=owner_id)
        self.db.add(todo)
        await self.db.commit()
        logger.info("todo.created", todo_id=todo.id, owner_id=owner_id)
        return todo

    async def update(
        self, owner_id: str, todo_id: int, name: str, is_complete: bool
    ) -> bool:
        """Replace the mutable fields. False if not found for this owner.

        Only name and is_complete are written; id and owner_id are never
        touched by an update.
        """
        owner_id = _require_owner(owner_id)
        result = await self.db.execute(
            update(Todo)
            .where(Todo.id == todo_id, Todo.owner_id == owner_id)
            .values(name=name, is_complete=is_complete)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def delete(self, owner_id: str, todo_id: int) -> bool:
        """Delete the todo. False if not found for this owner."""
        owner_id = _require_owner(owner_id)
        result = await self.db.execute(
            delete(Todo).where(Todo.id == todo_id, Todo.owner_id == owner_id)
        )
        await self.db.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info("todo.deleted", todo_id=todo_id, owner_id=owner_id)
        return deleted
