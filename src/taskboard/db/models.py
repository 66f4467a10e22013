"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations are written against these models.

Key concepts:
- UUID primary keys, generated client-side (uuid4)
- Generic column types (Uuid, JSON) so the schema runs on PostgreSQL and SQLite
- A task belongs either to a user or to an anonymous identifier, never both.
  The CHECK constraint backs up what the service layer already guarantees.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def tomorrow() -> date:
    """Default due date, evaluated per insert."""
    return date.today() + timedelta(days=1)


TASK_STATUSES = ("To-Do", "In-Progress", "Needs-Review", "Completed")
TASK_PRIORITIES = ("Low", "Medium", "High")


class User(Base):
    """A registered account.

    anonymous_identifier is bookkeeping only: the last anonymous
    identifier whose tasks were reconciled into this account.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    anonymous_identifier: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Task(Base):
    """A card on the board.

    Ownership is one of:
    - owner_user_id set, is_anonymous False (registered user)
    - anonymous_identifier set, is_anonymous True (cookie-tracked caller)

    The reconciler flips a task from the second form to the first exactly
    once; nothing flips it back.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "(owner_user_id IS NULL) <> (anonymous_identifier IS NULL)",
            name="ck_tasks_single_owner",
        ),
        Index("ix_tasks_owner_user_id", "owner_user_id"),
        Index("ix_tasks_anonymous_identifier", "anonymous_identifier"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="To-Do")
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default="Medium"
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False, default=tomorrow)
    owner_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    anonymous_identifier: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class Event(Base):
    """Append-only audit log.

    Learn: every task mutation and every reconciliation writes one row in
    the same transaction as the change itself. stream_id groups events
    per entity: "task:<uuid>" or "user:<uuid>".
    """

    __tablename__ = "events"
    __table_args__ = (Index("ix_events_stream_id", "stream_id", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stream_id: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
