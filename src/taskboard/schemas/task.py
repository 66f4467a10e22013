"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task
- TaskUpdate: what you PUT to modify a task (all optional, partial)
- TaskRead: what the API returns

The board client speaks camelCase (dueDate, isAnonymous, ...), so every
schema uses a camelCase alias generator while Python code stays snake_case.
Ownership fields are read-only: they are not in TaskCreate/TaskUpdate,
and unknown keys in a request body are ignored.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from taskboard.db.models import TASK_PRIORITIES, TASK_STATUSES

STATUS_PATTERN = f"^({'|'.join(TASK_STATUSES)})$"
PRIORITY_PATTERN = f"^({'|'.join(TASK_PRIORITIES)})$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _date_part(value):
    """Accept full ISO timestamps ("2026-10-20T00:00:00.000Z") for date fields."""
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class TaskCreate(_CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    status: str = Field(default="To-Do", pattern=STATUS_PATTERN)
    priority: str = Field(default="Medium", pattern=PRIORITY_PATTERN)
    due_date: Optional[date] = None  # None → tomorrow

    normalize_due_date = field_validator("due_date", mode="before")(_date_part)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v


class TaskUpdate(_CamelModel):
    """Partial update — only fields present (and non-null) are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=PRIORITY_PATTERN)
    due_date: Optional[date] = None

    normalize_due_date = field_validator("due_date", mode="before")(_date_part)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Title is required")
        return v

    def patch(self) -> dict:
        """Fields the client actually sent, as model attribute names."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class TaskRead(_CamelModel):
    id: uuid.UUID
    title: str
    status: str
    priority: str
    due_date: date
    owner_user_id: Optional[uuid.UUID]
    is_anonymous: bool
    anonymous_identifier: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )
