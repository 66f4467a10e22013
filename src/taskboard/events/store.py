"""Event store — append-only audit log.

Learn: Tasks and users are ordinary tables; the events table is a
history next to them, not a source of truth. Every task mutation,
registration, reconciliation and purge appends one event in the same
transaction as the change it describes, so a rolled-back change leaves
no event behind.

Streams group events per entity:
- task:<uuid>     created / updated / deleted
- user:<uuid>     registered / tasks reconciled into the account
- maintenance     anonymous task purges

The request id bound by RequestIdMiddleware is stamped into each
event's metadata, linking the audit trail to the access log.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Event

MAINTENANCE_STREAM = "maintenance"


def task_stream(task_id) -> str:
    return f"task:{task_id}"


def user_stream(user_id) -> str:
    return f"user:{user_id}"


def _request_metadata() -> dict:
    bound = structlog.contextvars.get_contextvars()
    return {k: bound[k] for k in ("request_id",) if k in bound}


class EventStore:
    """Append and read audit events on the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        stream_id: str,
        event_type: str,
        data: dict,
        metadata: dict | None = None,
    ) -> Event:
        """Append an event to a stream. Does not commit."""
        event = Event(
            stream_id=stream_id,
            type=event_type,
            data=data,
            meta={**_request_metadata(), **(metadata or {})},
        )
        self.db.add(event)
        await self.db.flush()
        return event

    async def read_stream(
        self,
        stream_id: str,
        after_id: int = 0,
        limit: int = 100,
    ) -> list[Event]:
        """Events of one stream in append order, after position `after_id`."""
        result = await self.db.execute(
            select(Event)
            .where(Event.stream_id == stream_id, Event.id > after_id)
            .order_by(Event.id)
            .limit(limit)
        )
        return list(result.scalars().all())
