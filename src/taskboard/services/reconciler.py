"""Ownership reconciliation — hand anonymous tasks over to an account.

Learn: When a caller logs in or registers while still carrying an
anonymousIdentifier cookie, every task tagged with that identifier becomes
the user's. This runs as ONE set-based UPDATE:

    UPDATE tasks
       SET owner_user_id = :user, is_anonymous = false,
           anonymous_identifier = NULL
     WHERE anonymous_identifier = :identifier
       AND owner_user_id IS NULL

A read-then-write loop could miss a task inserted between the read and
the writes; the single statement cannot. The owner_user_id IS NULL guard
keeps an already-owned task from being re-claimed.

Ordering contract with the caller:
1. reconcile (this function, inside the login/registration transaction)
2. commit
3. only then clear the anonymous cookie on the response

If the UPDATE fails, the exception propagates, the transaction rolls
back, and the cookie stays — the next login can retry.
"""

from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Task, User
from taskboard.events.store import EventStore, user_stream
from taskboard.events.types import TASKS_RECONCILED

logger = structlog.get_logger()


async def reconcile_anonymous_tasks(
    db: AsyncSession,
    user: User,
    anonymous_identifier: Optional[str],
) -> int:
    """Move all tasks of `anonymous_identifier` to `user`. Returns the count.

    No identifier → no-op returning 0. Does not commit.
    """
    if not anonymous_identifier:
        return 0

    result = await db.execute(
        update(Task)
        .where(
            Task.anonymous_identifier == anonymous_identifier,
            Task.owner_user_id.is_(None),
        )
        .values(
            owner_user_id=user.id,
            is_anonymous=False,
            anonymous_identifier=None,
        )
    )
    migrated = result.rowcount or 0

    # Bookkeeping only; never used for lookups afterwards.
    user.anonymous_identifier = anonymous_identifier

    await EventStore(db).append(
        stream_id=user_stream(user.id),
        event_type=TASKS_RECONCILED,
        data={"anonymous_identifier": anonymous_identifier, "migrated": migrated},
    )
    await db.flush()

    logger.info(
        "tasks.reconciled",
        user_id=str(user.id),
        anonymous_identifier=anonymous_identifier,
        migrated=migrated,
    )
    return migrated
