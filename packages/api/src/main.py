# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from db import engine
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .routes import health, platforms, profiles
from .schemas.error import ErrorResponse
from .services.errors import AmbiguousDefaultError, ProfileError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    logger.info(
        "Starting %s (auth_disabled=%s, single_default_per_org=%s)",
        settings.APP_NAME,
        settings.AUTH_DISABLED,
        settings.SINGLE_DEFAULT_PER_ORG,
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Export Profile API",
    description="Field-mapping profiles for MISMO 3.4 loan exports",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


def _build_error(status_code: int, detail: str, request_id: str, **extra) -> ErrorResponse:
    return ErrorResponse(
        type="about:blank",
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request_id,
        **extra,
    )


@app.exception_handler(ProfileError)
async def profile_error_handler(request: Request, exc: ProfileError):
    """Map service-layer errors to RFC 7807 using each error's status code."""
    request_id = _request_id(request)
    extra = {"code": type(exc).__name__}
    if isinstance(exc, AmbiguousDefaultError):
        extra["profile_ids"] = exc.profile_ids
    if exc.status_code >= 500:
        logger.error("%s (request_id=%s): %s", type(exc).__name__, request_id, exc.message)
    body = _build_error(exc.status_code, exc.message, request_id, **extra)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    body = _build_error(exc.status_code, str(exc.detail), _request_id(request))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    body = _build_error(422, str(exc.errors()), _request_id(request))
    return JSONResponse(status_code=422, content=body.model_dump(exclude_none=True))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    request_id = _request_id(request)
    logger.exception("Unhandled exception (request_id=%s)", request_id)
    body = _build_error(500, "An unexpected error occurred.", request_id)
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(platforms.router, prefix="/api/platforms", tags=["platforms"])
app.include_router(profiles.router, prefix="/api/export-profiles", tags=["export-profiles"])

if settings.SQLADMIN_ENABLED:
    from .admin import setup_admin

    setup_admin(app)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": f"Welcome to {settings.APP_NAME}"}
