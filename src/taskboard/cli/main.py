"""Taskboard CLI — look at and add to the board from a terminal.

Usage:
    taskboard tasks                              # List your tasks
    taskboard add "write release notes" -p High  # Create a task
    taskboard login me@example.com               # Print a bearer token
    taskboard purge-anonymous --days 7           # Delete stale anonymous tasks

Identity is taken from the environment, the same way the browser sends it:
    TASKBOARD_TOKEN          bearer token (from `taskboard login`)
    TASKBOARD_ANONYMOUS_ID   anonymous identifier (printed by `taskboard add`)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import os
import sys
from typing import Optional

import click
import httpx

from taskboard.db.models import TASK_PRIORITIES, TASK_STATUSES

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3001"
ANONYMOUS_COOKIE = "anonymousIdentifier"


def _api_url() -> str:
    return os.environ.get("TASKBOARD_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(
    token: Optional[str] = None, anonymous_id: Optional[str] = None
) -> httpx.AsyncClient:
    """Build an async HTTP client carrying the caller's identity."""
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if anonymous_id:
        headers["Cookie"] = f"{ANONYMOUS_COOKIE}={anonymous_id}"
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(response: httpx.Response) -> None:
    """Print the API's {"error": ...} message and exit non-zero."""
    try:
        message = response.json().get("error", response.text)
    except ValueError:
        message = response.text
    click.secho(f"Error ({response.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    colors = {
        "To-Do": "white",
        "In-Progress": "yellow",
        "Needs-Review": "cyan",
        "Completed": "green",
    }
    return colors.get(status, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="taskboard")
def main():
    """Taskboard — kanban tasks, with or without an account."""


token_option = click.option(
    "--token", envvar="TASKBOARD_TOKEN", help="Bearer token (or TASKBOARD_TOKEN)"
)
anonymous_option = click.option(
    "--anonymous-id",
    envvar="TASKBOARD_ANONYMOUS_ID",
    help="Anonymous identifier (or TASKBOARD_ANONYMOUS_ID)",
)


# ---------------------------------------------------------------------------
# taskboard tasks
# ---------------------------------------------------------------------------


@main.command()
@token_option
@anonymous_option
def tasks(token: Optional[str], anonymous_id: Optional[str]):
    """List your tasks, grouped by status."""
    _run(_tasks_impl(token, anonymous_id))


async def _tasks_impl(token: Optional[str], anonymous_id: Optional[str]):
    async with _client(token, anonymous_id) as c:
        r = await c.get("/api/tasks")
    if r.status_code != 200:
        _fail(r)

    rows = r.json()
    if not rows:
        click.echo("No tasks yet.")
        return

    for status in TASK_STATUSES:
        column = [t for t in rows if t["status"] == status]
        if not column:
            continue
        click.secho(f"\n{status} ({len(column)})", fg=_status_color(status), bold=True)
        _print_table(
            [{**t, "short_id": t["id"][:8]} for t in column],
            [("ID", "short_id", 8), ("Title", "title", 40),
             ("Priority", "priority", 8), ("Due", "dueDate", 10)],
        )


# ---------------------------------------------------------------------------
# taskboard add
# ---------------------------------------------------------------------------


@main.command()
@click.argument("title")
@click.option("--status", "-s", default="To-Do",
              type=click.Choice(TASK_STATUSES))
@click.option("--priority", "-p", default="Medium",
              type=click.Choice(TASK_PRIORITIES))
@click.option("--due", help="Due date (YYYY-MM-DD), defaults to tomorrow")
@token_option
@anonymous_option
def add(title: str, status: str, priority: str, due: Optional[str],
        token: Optional[str], anonymous_id: Optional[str]):
    """Create a task. Without a token or identifier, one is issued."""
    _run(_add_impl(title, status, priority, due, token, anonymous_id))


async def _add_impl(title: str, status: str, priority: str, due: Optional[str],
                    token: Optional[str], anonymous_id: Optional[str]):
    body = {"title": title, "status": status, "priority": priority}
    if due:
        body["dueDate"] = due

    async with _client(token, anonymous_id) as c:
        r = await c.post("/api/tasks", json=body)
    if r.status_code != 201:
        _fail(r)

    task = r.json()
    click.secho(f"Created {task['id'][:8]}: {task['title']} (due {task['dueDate']})",
                fg="green")

    issued = r.cookies.get(ANONYMOUS_COOKIE)
    if issued:
        click.echo("You were issued an anonymous identifier. Keep it with:")
        click.echo(f"  export TASKBOARD_ANONYMOUS_ID={issued}")


# ---------------------------------------------------------------------------
# taskboard login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option("--password", confirmation_prompt=False)
@anonymous_option
def login(email: str, password: str, anonymous_id: Optional[str]):
    """Log in and print a bearer token. Anonymous tasks move to the account."""
    _run(_login_impl(email, password, anonymous_id))


async def _login_impl(email: str, password: str, anonymous_id: Optional[str]):
    async with _client(anonymous_id=anonymous_id) as c:
        r = await c.post("/api/users/login", json={"email": email, "password": password})
    if r.status_code != 200:
        _fail(r)

    click.echo(r.json()["token"])
    if anonymous_id:
        click.secho("Anonymous tasks were moved to your account; "
                    "unset TASKBOARD_ANONYMOUS_ID.", fg="yellow", err=True)


# ---------------------------------------------------------------------------
# taskboard purge-anonymous
# ---------------------------------------------------------------------------


@main.command("purge-anonymous")
@click.option("--days", type=int, default=None,
              help="Age threshold (defaults to TASKBOARD_ANONYMOUS_TASK_RETENTION_DAYS)")
@click.confirmation_option(prompt="Delete stale anonymous tasks?")
def purge_anonymous(days: Optional[int]):
    """Delete anonymous tasks nobody claimed within the retention window.

    Talks to the database directly (TASKBOARD_DATABASE_URL), not the API.
    """
    deleted = _run(_purge_impl(days))
    click.echo(f"Cleanup completed. {deleted} anonymous tasks deleted.")


async def _purge_impl(days: Optional[int]) -> int:
    from taskboard.config import settings
    from taskboard.db.engine import async_session_factory, engine
    from taskboard.services.task_service import purge_stale_anonymous_tasks

    try:
        async with async_session_factory() as db:
            return await purge_stale_anonymous_tasks(
                db, days if days is not None else settings.anonymous_task_retention_days
            )
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()
