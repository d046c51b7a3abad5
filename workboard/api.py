"""
FastAPI application for Workboard.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .db.base import init_database
from .middleware import LoggingMiddleware, RequestIDMiddleware
from .tracker.errors import WorkboardError
from .tracker.routes import router as tracker_router

logger = structlog.get_logger()

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("workboard_starting", environment=settings.environment)

    try:
        await init_database()
    except Exception as e:
        logger.error("workboard_start_failed", error=str(e))
        raise

    yield

    logger.info("workboard_stopped")


app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant task tracker with user-defined custom fields",
    version=importlib.metadata.version("workboard"),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)
# Last added runs first: the request id must exist before logging binds it
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(tracker_router)


@app.exception_handler(WorkboardError)
async def workboard_error_handler(request: Request, exc: WorkboardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_error", code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    logger.info("request_rejected", code="VALIDATION_ERROR", errors=len(problems))
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "; ".join(problems) or "Invalid request",
            "code": "VALIDATION_ERROR",
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.get("/health", tags=["system"])
async def health() -> dict:
    """Liveness check: the API is reachable and the app started."""
    return {"status": "ok"}


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": importlib.metadata.version("workboard")}
