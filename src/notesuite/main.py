# Main application entry point
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from .api import (
    auth_router,
    health_router,
    maintenance_router,
    notes_router,
    public_links_router,
    sharing_router,
    tags_router,
)
from .config import get_settings
from .core.errors import DomainError, ErrorKind
from .core.logging import LoggingMiddleware, get_logger, redact_path, setup_logging
from .core.redis_client import get_redis_client
from .core.schemas.common import ErrorResponse
from .database import create_tables

# Setup logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.GONE: 410,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION: 400,
    ErrorKind.INFRASTRUCTURE: 503,
}

# token errors on the auth endpoints mean "log in again", not "forbidden"
_UNAUTHENTICATED_CODES = {"invalid_credentials", "token_invalid", "token_revoked"}


def status_for(exc: DomainError) -> int:
    if exc.kind is ErrorKind.UNAUTHORIZED and exc.code in _UNAUTHENTICATED_CODES:
        return 401
    return ERROR_STATUS.get(exc.kind, 400)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        "Starting NoteSuite application",
        extra={
            "version": settings.app_version,
            "environment": settings.environment,
            "debug": settings.debug,
        },
    )

    # Redis only backs the access token blacklist, so start without it if needed
    redis_client = get_redis_client()
    try:
        await redis_client.connect()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Continuing without Redis...")

    if settings.create_tables_on_startup:
        try:
            await create_tables()
            logger.info("Database tables created/verified")
        except Exception as e:
            logger.error("Failed to create database tables", exc_info=e)
            raise

    yield

    # Shutdown
    logger.info("Shutting down NoteSuite application")
    try:
        await redis_client.disconnect()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning(f"Redis disconnect failed: {e}")


app = FastAPI(
    title="NoteSuite",
    description="Notes with sharing, public links and rotating refresh tokens",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = status_for(exc)
    log = logger.warning if status_code >= 500 else logger.info
    log(
        "Request failed",
        extra={
            "path": redact_path(request.url.path),
            "status_code": status_code,
            "error": exc.code,
            "kind": exc.kind.value,
        },
    )
    body = ErrorResponse(
        error=exc.code, kind=exc.kind.value, message=exc.message, details=exc.details or None
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def database_unavailable_handler(request: Request, exc: Exception):
    logger.error(
        "Database unavailable",
        extra={"path": redact_path(request.url.path)},
        exc_info=exc,
    )
    body = ErrorResponse(
        error="infrastructure_error",
        kind=ErrorKind.INFRASTRUCTURE.value,
        message="Service temporarily unavailable",
    )
    return JSONResponse(status_code=503, content=body.model_dump(mode="json"))


# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(notes_router, prefix="/api")
app.include_router(sharing_router, prefix="/api")
app.include_router(public_links_router, prefix="/api")
app.include_router(tags_router, prefix="/api")
app.include_router(maintenance_router, prefix="/api")
app.include_router(health_router, prefix="/api")


# API root endpoint for better navigation
@app.get("/api/")
async def api_root():
    return {
        "message": "NoteSuite API",
        "version": settings.app_version,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
        "endpoints": {
            "authentication": "/api/auth/",
            "notes": "/api/notes/",
            "shares": "/api/shares/",
            "public_links": "/api/public-links/",
            "anonymous_access": "/api/p/{token}",
            "tags": "/api/tags/",
            "health": "/api/health/",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("notesuite.main:app", host=settings.host, port=settings.port, reload=settings.reload)
