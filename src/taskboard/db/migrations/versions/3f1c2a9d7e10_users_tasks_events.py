"""users, tasks and events tables

Learn: Tasks carry either owner_user_id or anonymous_identifier. The
CHECK constraint makes "both" and "neither" impossible at the database
level; the reconciler flips both columns in a single UPDATE so the
constraint holds after every statement.

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 09:40:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("anonymous_identifier", sa.String(36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(10), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column(
            "owner_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False),
        sa.Column("anonymous_identifier", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "(owner_user_id IS NULL) <> (anonymous_identifier IS NULL)",
            name="ck_tasks_single_owner",
        ),
    )
    op.create_index("ix_tasks_owner_user_id", "tasks", ["owner_user_id"])
    op.create_index(
        "ix_tasks_anonymous_identifier", "tasks", ["anonymous_identifier"]
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("stream_id", sa.String(200), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_events_stream_id", "events", ["stream_id", "id"])


def downgrade() -> None:
    op.drop_index("ix_events_stream_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_tasks_anonymous_identifier", table_name="tasks")
    op.drop_index("ix_tasks_owner_user_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("users")
