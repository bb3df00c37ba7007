"""Vault gateway FastAPI application entry point."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vault_gateway import __version__
from vault_gateway.config import get_settings
from vault_gateway.db import close_db, get_async_session, init_db
from vault_gateway.errors import VaultError, ValidationError
from vault_gateway.services.api_key import ApiKeyService
from vault_gateway.services.gc.lifecycle import init_gc_scheduler, shutdown_gc_scheduler

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("vault.startup", version=__version__)
    if get_settings().identity.uses_default_secret:
        logger.warning(
            "identity.default_secret",
            hint="set VAULT_IDENTITY__JWT_SECRET; bearer tokens signed with the default are accepted",
        )
    await init_db()

    async with get_async_session() as session:
        await ApiKeyService.seed_configured_key(session, get_settings())

    # Initialize and start GC scheduler
    await init_gc_scheduler()

    yield

    # Shutdown
    logger.info("vault.shutdown")

    await shutdown_gc_scheduler()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Vault Gateway",
        description="Authenticated read-only gateway over the entity vault",
        version=__version__,
        lifespan=lifespan,
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "x-api-key", "x-client-info", "apikey", "content-type"],
        expose_headers=["X-Request-Id"],
    )

    # Error handlers
    @app.exception_handler(VaultError)
    async def vault_error_handler(request: Request, exc: VaultError):
        """Handle gateway errors with consistent format."""
        request_id = getattr(request.state, "request_id", None)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(request_id),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, "request_id", None)
        error = ValidationError(details={"errors": exc.errors()})
        return JSONResponse(
            status_code=error.status_code,
            content=jsonable_encoder(
                error.to_dict(request_id), custom_encoder={Exception: str}
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.exception("vault.unhandled_error", path=request.url.path, request_id=request_id)
        return JSONResponse(
            status_code=500,
            content=VaultError().to_dict(request_id),
        )

    # Health check
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    # Import and register API routers
    from vault_gateway.api.gateway import router as gateway_router
    from vault_gateway.api.v1 import router as v1_router

    app.include_router(v1_router, prefix="/v1")
    app.include_router(gateway_router, prefix=f"/{settings.gateway.route_prefix.strip('/')}")

    return app


# Create default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "vault_gateway.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=True,
    )
