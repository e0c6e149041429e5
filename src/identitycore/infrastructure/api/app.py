"""FastAPI application factory.

Wires the routers, the error mapping for ``IdentityError`` and the
correlation-id middleware into one ASGI application.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from identitycore.core.config import Settings, get_settings
from identitycore.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from identitycore.domain.exceptions import IdentityError, ValidationError
from identitycore.infrastructure.persistence.database import close_database, init_database

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database before serving and close it on shutdown."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("identitycore starting", environment=settings.environment, version=settings.app_version)

    try:
        await init_database()
    except Exception as e:
        logger.error("Database startup failed", error=str(e))
        raise

    yield

    await close_database()
    logger.info("identitycore stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the ASGI application.

    Interactive docs are only served in development.
    """
    settings = settings or get_settings()
    docs_enabled = settings.is_development

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Identity and credential lifecycle service",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    include_routers(app, settings)
    register_exception_handlers(app)
    register_correlation_middleware(app)
    return app


def include_routers(app: FastAPI, settings: Settings) -> None:
    from identitycore.infrastructure.api.routes import auth_router, health_router, users_router

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
    app.include_router(users_router, prefix=f"{settings.api_prefix}/users", tags=["users"])

    @app.get(settings.api_prefix, tags=["root"])
    async def api_root():
        return {"name": settings.app_name, "version": settings.app_version, "api_version": "v1"}


def error_response(exc: IdentityError) -> JSONResponse:
    """Render an identity error as ``{"error": code, "message": ...}``.

    401 responses carry a Bearer challenge; retryable failures carry
    ``Retry-After``.
    """
    content: dict = {"error": exc.code, "message": exc.message}
    if isinstance(exc, ValidationError):
        content["details"] = [
            {"field": e.field, "message": e.message, "code": e.code} for e in exc.errors
        ]
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    elif getattr(exc, "retryable", False):
        headers = {"Retry-After": "1"}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(IdentityError)
    async def handle_identity_error(request: Request, exc: IdentityError):
        logger.info(
            "Request rejected",
            method=request.method,
            path=request.url.path,
            error=exc.code,
            status_code=exc.status_code,
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        # loc starts with "body"/"query"; report the field path after it
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
                "message": err["msg"],
                "code": err["type"],
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "error": ValidationError.code,
                "message": ValidationError.default_message,
                "details": details,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error",
            method=request.method,
            path=request.url.path,
            exc_type=type(exc).__name__,
        )
        message = str(exc) if get_settings().debug else "An unexpected error occurred"
        return JSONResponse(status_code=500, content={"error": "internal_error", "message": message})


def register_correlation_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def correlate(request: Request, call_next):
        """Bind a correlation id for the request's log entries and echo it back."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or f"cid_{uuid.uuid4().hex[:12]}"
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
            logger.info(
                "Request handled",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            clear_context()


app = create_app()
