"""Task API routes.

Learn: These routes are the HTTP interface to the board. Every handler
resolves the caller's Identity first (bearer token, else anonymous
cookie, else unknown); the service layer decides what that identity may
do. Routes just translate HTTP to service calls — errors raised by the
service are rendered by the app-level error handlers.

Key patterns:
- POST creates and may mint an anonymous identifier (returned as cookie)
- PUT is a partial update: absent fields are preserved
- Ownership fields can't be set through the API
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.anonymous import set_anonymous_cookie
from taskboard.auth.identity import Identity, get_identity
from taskboard.db.engine import get_db
from taskboard.schemas.task import TaskCreate, TaskRead, TaskUpdate
from taskboard.schemas.user import MessageResponse
from taskboard.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.get("/start-backend", response_model=MessageResponse)
async def start_backend():
    """Wake-up ping for free-tier hosting that sleeps when idle."""
    return MessageResponse(message="Backend started successfully")


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    identity: Identity = Depends(get_identity),
    svc: TaskService = Depends(_task_svc),
):
    """List the caller's tasks (user's or anonymous identifier's, never both)."""
    return await svc.list_tasks(identity)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    response: Response,
    identity: Identity = Depends(get_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Create a task. New anonymous callers get an identifier cookie."""
    task, issued_identifier = await svc.create_task(identity, body.model_dump())
    if issued_identifier:
        set_anonymous_cookie(response, issued_identifier)
    return task


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: str,
    identity: Identity = Depends(get_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Get a single task the caller owns."""
    return await svc.get_task(identity, task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    identity: Identity = Depends(get_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task (title, status, priority, dueDate)."""
    return await svc.update_task(identity, task_id, body.patch())


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    identity: Identity = Depends(get_identity),
    svc: TaskService = Depends(_task_svc),
):
    """Delete a task the caller owns."""
    await svc.delete_task(identity, task_id)
    return Response(status_code=204)
