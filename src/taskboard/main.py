"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database engine).
Middleware, CORS, error handlers and routers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskboard import __version__
from taskboard.api import api_router
from taskboard.config import settings
from taskboard.errors import TaskboardError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Schema changes are applied with `alembic upgrade head`, not
    here.
    """
    logger.info(
        "taskboard.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("taskboard.shutdown")

    from taskboard.db.engine import engine
    await engine.dispose()


# ─── Error handlers ──────────────────────────────────────


async def taskboard_error_handler(request: Request, exc: TaskboardError):
    log = logger.warning if exc.status_code >= 500 else logger.info
    log("request.rejected", kind=exc.kind, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400 with the first problem spelled out."""
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content={"error": "Invalid request"})
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid value")
    return JSONResponse(
        status_code=400,
        content={"error": f"{field}: {message}" if field else message},
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("store.unhandled_error", error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": "Something went wrong on the server"},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Taskboard",
        description="Kanban task tracking API with anonymous-to-account task handover",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from taskboard.middleware.request_id import RequestIdMiddleware
    from taskboard.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,  # the board sends cookies cross-origin
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error handlers ───────────────────────────────────────
    app.add_exception_handler(TaskboardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "Welcome to the Task Management API!"}

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskboard.main:app)
app = create_app()
