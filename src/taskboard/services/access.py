"""Task access gate — who may create, list, read, update or delete.

Learn: Ownership is the only permission in the system.
- create: always allowed; the new task is tagged with the caller
- list: needs an identity; returns only the caller's own tasks
- by id: needs an identity, the task must exist, and the caller must own it

Checks run in that order, so an unidentified caller gets 400 even for a
task id that doesn't exist, and an identified caller gets 404 before 403.
"""

import uuid
from typing import Optional

from taskboard.auth.anonymous import new_anonymous_identifier
from taskboard.auth.identity import Identity
from taskboard.db.models import Task
from taskboard.errors import AuthenticationError, Forbidden, IdentificationMissing
from taskboard.services.task_store import OWNER_ANONYMOUS, OWNER_USER


class OwnerTag:
    """Ownership columns for a new task, plus the identifier minted for it."""

    def __init__(
        self,
        owner_user_id=None,
        anonymous_identifier: Optional[str] = None,
        issued_identifier: Optional[str] = None,
    ):
        self.owner_user_id = owner_user_id
        self.anonymous_identifier = anonymous_identifier
        self.issued_identifier = issued_identifier

    def columns(self) -> dict:
        return {
            "owner_user_id": self.owner_user_id,
            "anonymous_identifier": self.anonymous_identifier,
            "is_anonymous": self.owner_user_id is None,
        }


def user_uuid(identity: Identity) -> uuid.UUID:
    """The authenticated caller's id as a UUID."""
    try:
        return uuid.UUID(identity.user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token subject")


def owner_for_create(identity: Identity) -> OwnerTag:
    """Tag a new task with its creator.

    Unknown callers get a freshly minted anonymous identifier.
    """
    if identity.is_authenticated:
        return OwnerTag(owner_user_id=user_uuid(identity))
    if identity.is_anonymous:
        return OwnerTag(anonymous_identifier=identity.anonymous_identifier)

    identifier = new_anonymous_identifier()
    return OwnerTag(anonymous_identifier=identifier, issued_identifier=identifier)


def require_identified(identity: Identity) -> None:
    if identity.is_unknown:
        raise IdentificationMissing()


def owner_scope(identity: Identity) -> tuple:
    """(owner_kind, owner_value) for listing the caller's tasks."""
    require_identified(identity)
    if identity.is_authenticated:
        return OWNER_USER, user_uuid(identity)
    return OWNER_ANONYMOUS, identity.anonymous_identifier


def owns(identity: Identity, task: Task) -> bool:
    if identity.is_authenticated:
        return (
            task.owner_user_id is not None
            and str(task.owner_user_id) == identity.user_id
        )
    if identity.is_anonymous:
        return (
            task.owner_user_id is None
            and task.anonymous_identifier == identity.anonymous_identifier
        )
    return False


def authorize(identity: Identity, task: Task) -> None:
    """Raise Forbidden unless `identity` owns `task`."""
    require_identified(identity)
    if not owns(identity, task):
        raise Forbidden("You do not have access to this task")
