"""
Recruiting API application.

Wires the routers, error handlers and middleware stack. Tables are managed
by alembic; `DATABASE_CREATE_ALL` creates them at startup for local runs.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlparse
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from api.routes import health
from api.routes.v1 import admin, applications, auth, jobs, notifications
from core.config import settings
from core.middleware import (
    ErrorHandlingMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from database.engine import close_db, init_db

setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

logger = logging.getLogger(__name__)

API_ROUTERS = (
    auth.router,
    jobs.router,
    applications.router,
    notifications.router,
    admin.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting {settings.app_name} ({settings.app_env}), "
        f"AI backend at {settings.ai_backend_url}, storage: {settings.storage_backend}"
    )
    if settings.database_create_all:
        await init_db()
    yield
    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


def _add_middleware(app: FastAPI) -> None:
    # Last added runs first: CORS -> request logging -> error safety net -> routes
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        max_body_size=settings.log_max_body_size,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )


def _mount_local_storage(app: FastAPI) -> None:
    """Serve the local resume directory under the path of its public URLs."""
    files_path = urlparse(settings.local_storage_base_url).path.rstrip("/") or "/files"
    directory = Path(settings.local_storage_path)
    directory.mkdir(parents=True, exist_ok=True)
    app.mount(files_path, StaticFiles(directory=directory), name="files")
    logger.info(f"Serving local storage {directory} at {files_path}")


app = FastAPI(
    title=settings.app_name,
    description="Recruiting workflow API: job board, applications and AI screening",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

setup_error_handlers(app)
_add_middleware(app)

app.include_router(health.router, tags=["health"])
for router in API_ROUTERS:
    app.include_router(router, prefix=settings.api_prefix)

if settings.storage_backend == "local":
    _mount_local_storage(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
