# src/school_clicker/main.py
"""Main entry point for the School Clicker application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from school_clicker import __version__
from school_clicker.api.v1 import schools_router, scores_router, sessions_router, system_router
from school_clicker.core.errors import ClickerError, ErrorStatus, ResourceExhaustedError
from school_clicker.core.logging import configure_logging
from school_clicker.core.settings import settings
from school_clicker.db.session import create_tables
from school_clicker.services.captcha import get_challenge_verifier

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="School Clicker API",
    description="Anti-abuse score submission for the school clicker leaderboard",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(sessions_router, prefix="/api/v1")
app.include_router(scores_router, prefix="/api/v1")
app.include_router(schools_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(ClickerError)
async def handle_clicker_error(request: Request, exc: ClickerError) -> JSONResponse:
    """Render service rejections as the JSON error envelope."""
    if isinstance(exc, ResourceExhaustedError):
        logger.info("%s %s throttled: %s", request.method, request.url.path, exc.code)
    else:
        logger.debug("%s %s rejected: %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_payload()})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reshape request validation failures into the same envelope."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request.")
    if location:
        message = f"{location}: {message}"
    status = ErrorStatus.INVALID_ARGUMENT
    return JSONResponse(
        status_code=status.http_status,
        content={"error": {"status": status.value, "code": status.value, "message": message}},
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.log_level)
    if settings.create_tables_on_startup:
        create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    get_challenge_verifier().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "description": "Anti-abuse score submission for the school clicker leaderboard",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("school_clicker.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
