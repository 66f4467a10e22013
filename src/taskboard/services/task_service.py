"""Task service — business logic for the board's tasks.

Learn: Every operation runs the same pipeline:
1. access gate (services/access.py) decides, based on the caller's Identity
2. task store (services/task_store.py) reads/writes the row
3. an audit event is appended and the transaction is committed

Store failures are wrapped into StoreError with a per-operation message;
the driver's own message only goes to the log.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.identity import Identity
from taskboard.db.models import Task
from taskboard.errors import NotFound, StoreError
from taskboard.events.store import MAINTENANCE_STREAM, EventStore, task_stream
from taskboard.events.types import (
    TASK_CREATED,
    TASK_DELETED,
    TASK_UPDATED,
    TASKS_PURGED,
)
from taskboard.services import access
from taskboard.services.task_store import TaskStore

logger = structlog.get_logger()


def parse_task_id(task_id: str) -> uuid.UUID:
    """Malformed ids can't exist, so they are reported as not found."""
    try:
        return uuid.UUID(str(task_id))
    except ValueError:
        raise NotFound("Task not found")


class TaskService:
    """Business logic for task CRUD, scoped to the caller's identity."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = TaskStore(db)
        self.events = EventStore(db)

    @asynccontextmanager
    async def _store_errors(self, message: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store.error", operation=message, error=str(e))
            raise StoreError(message) from e

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self, identity: Identity, data: dict
    ) -> tuple[Task, Optional[str]]:
        """Create a task owned by the caller.

        Returns (task, issued_identifier). issued_identifier is set only when
        the caller had no identity and a new anonymous identifier was minted;
        the HTTP layer must hand it to the client as a cookie.
        """
        tag = access.owner_for_create(identity)
        fields = {k: v for k, v in data.items() if v is not None}

        async with self._store_errors("Error creating task"):
            task = await self.store.create(**fields, **tag.columns())
            await self.events.append(
                stream_id=task_stream(task.id),
                event_type=TASK_CREATED,
                data={
                    "title": task.title,
                    "owner_user_id": str(task.owner_user_id) if task.owner_user_id else None,
                    "anonymous_identifier": task.anonymous_identifier,
                },
            )
            await self.db.commit()

        logger.info(
            "task.created",
            task_id=str(task.id),
            identity=identity.kind,
            issued_identifier=tag.issued_identifier is not None,
        )
        return task, tag.issued_identifier

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(self, identity: Identity) -> list[Task]:
        owner_kind, owner_value = access.owner_scope(identity)
        async with self._store_errors("Error fetching tasks"):
            return await self.store.find_by_owner(owner_kind, owner_value)

    async def get_task(self, identity: Identity, task_id: str) -> Task:
        access.require_identified(identity)
        tid = parse_task_id(task_id)
        async with self._store_errors("Error fetching task"):
            task = await self.store.find_by_id(tid)
        if not task:
            raise NotFound("Task not found")
        access.authorize(identity, task)
        return task

    # ─── Update ──────────────────────────────────────────

    async def update_task(self, identity: Identity, task_id: str, patch: dict) -> Task:
        """Apply a partial update. Fields absent from `patch` are untouched."""
        task = await self.get_task(identity, task_id)
        if not patch:
            return task

        async with self._store_errors("Error updating task"):
            task = await self.store.update(task.id, patch)
            if task is None:
                # deleted between the ownership check and the update
                raise NotFound("Task not found")
            await self.events.append(
                stream_id=task_stream(task.id),
                event_type=TASK_UPDATED,
                data={k: str(v) for k, v in patch.items()},
            )
            await self.db.commit()
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, identity: Identity, task_id: str) -> None:
        task = await self.get_task(identity, task_id)
        async with self._store_errors("Error deleting task"):
            await self.store.delete(task.id)
            await self.events.append(
                stream_id=task_stream(task.id),
                event_type=TASK_DELETED,
                data={"title": task.title},
            )
            await self.db.commit()
        logger.info("task.deleted", task_id=str(task.id), identity=identity.kind)


# ═══════════════════════════════════════════════════════════
# Maintenance
# ═══════════════════════════════════════════════════════════


async def purge_stale_anonymous_tasks(db: AsyncSession, retention_days: int) -> int:
    """Delete anonymous tasks older than `retention_days` that were never claimed.

    Reconciled tasks are never touched: they have an owner and
    is_anonymous is false.
    """
    threshold = datetime.now(timezone.utc) - timedelta(days=retention_days)
    try:
        deleted = await TaskStore(db).purge_stale_anonymous(threshold)
        await EventStore(db).append(
            stream_id=MAINTENANCE_STREAM,
            event_type=TASKS_PURGED,
            data={"deleted": deleted, "older_than": threshold.isoformat()},
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("tasks.purge_failed", error=str(e))
        raise StoreError("Error purging anonymous tasks") from e

    logger.info("tasks.purged", deleted=deleted, retention_days=retention_days)
    return deleted
