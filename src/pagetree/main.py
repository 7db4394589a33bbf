"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

from pagetree import __version__  # noqa: E402
from pagetree.api.deps import get_settings  # noqa: E402
from pagetree.api.routers import analytics, cache, diagrams, modules, nodes, sitemap  # noqa: E402
from pagetree.errors import (  # noqa: E402
    AlreadyExistsError,
    InvalidInputError,
    IOFailureError,
    NotFoundError,
    TreeError,
)

logger = logging.getLogger(__name__)

# Most specific first; TreeError itself falls through to 500
ERROR_STATUS: list[tuple[type[TreeError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (IOFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(error: TreeError) -> int:
    """HTTP status code for a service error."""
    for error_type, code in ERROR_STATUS:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _ensure_assets_dir() -> None:
    """Create the assets directory if the workspace does not have one yet."""
    settings = get_settings()
    settings.assets_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Assets directory: {settings.assets_path}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup:
    - Ensures the assets directory exists
    """
    try:
        _ensure_assets_dir()
    except (ValueError, OSError) as e:
        logger.warning(f"Could not prepare assets directory: {e}")

    logger.info("pagetree started")

    yield


app = FastAPI(
    title="pagetree",
    description="Module/page/subpage sitemap service with Mermaid diagrams and analytics",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TreeError)
async def tree_error_handler(request: Request, exc: TreeError) -> JSONResponse:
    """Translate service errors into JSON error responses."""
    code = status_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(modules.router)
app.include_router(nodes.router)
app.include_router(diagrams.router)
app.include_router(analytics.router)
app.include_router(cache.router)
app.include_router(sitemap.router)
