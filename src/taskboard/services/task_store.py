"""Task store — thin persistence facade over the tasks table.

Learn: No business rules live here. Who may see or touch a task is
decided by services/access.py before any of these methods are called;
the store only reads and writes rows. Nothing here commits — the
calling service owns the transaction.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Task

OWNER_USER = "user"
OWNER_ANONYMOUS = "anonymous"

# Only these columns can be changed through update(); ownership is
# changed by the reconciler alone.
PATCHABLE_FIELDS = frozenset({"title", "status", "priority", "due_date"})


class TaskStore:
    """CRUD over tasks, scoped by owner."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, **fields) -> Task:
        task = Task(**fields)
        self.db.add(task)
        await self.db.flush()  # populate defaults and the id
        return task

    async def find_by_id(self, task_id: uuid.UUID) -> Optional[Task]:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        return result.scalars().first()

    async def find_by_owner(self, owner_kind: str, owner_value) -> list[Task]:
        """All tasks of one user or one anonymous identifier, never both."""
        if owner_kind == OWNER_USER:
            criteria = Task.owner_user_id == owner_value
        elif owner_kind == OWNER_ANONYMOUS:
            criteria = Task.anonymous_identifier == owner_value
        else:
            raise ValueError(f"Unknown owner kind: {owner_kind}")

        result = await self.db.execute(
            select(Task).where(criteria).order_by(Task.due_date, Task.created_at)
        )
        return list(result.scalars().all())

    async def update(self, task_id: uuid.UUID, patch: dict) -> Optional[Task]:
        task = await self.find_by_id(task_id)
        if not task:
            return None

        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not patchable: {sorted(unknown)}")

        for field, value in patch.items():
            setattr(task, field, value)
        await self.db.flush()
        return task

    async def delete(self, task_id: uuid.UUID) -> bool:
        task = await self.find_by_id(task_id)
        if not task:
            return False
        await self.db.delete(task)
        await self.db.flush()
        return True

    async def purge_stale_anonymous(self, older_than: datetime) -> int:
        """Delete never-reconciled anonymous tasks created before `older_than`."""
        result = await self.db.execute(
            delete(Task)
            .where(
                Task.is_anonymous.is_(True),
                Task.owner_user_id.is_(None),
                Task.created_at < older_than,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
