"""Event type constants.

Learn: Centralizing event types as constants prevents typos and
makes it easy to discover all event types in the system.
"""

# ─── Task lifecycle ──────────────────────────────────────

TASK_CREATED = "task.created"
TASK_UPDATED = "task.updated"
TASK_DELETED = "task.deleted"

# ─── Ownership ───────────────────────────────────────────

TASKS_RECONCILED = "tasks.reconciled"
TASKS_PURGED = "tasks.purged"

# ─── Accounts ────────────────────────────────────────────

USER_REGISTERED = "user.registered"
