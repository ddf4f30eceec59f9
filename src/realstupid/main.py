# src/realstupid/main.py
"""Main entry point for the RealStupid application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from realstupid import __version__
from realstupid.api.v1 import auth_router, communities_router, posts_router
from realstupid.core.errors import (
    ConflictFailed,
    NotFound,
    RealStupidError,
    StorageFailed,
    Unauthenticated,
    ValidationFailed,
    VoteFailed,
)
from realstupid.core.settings import settings
from realstupid.db.session import Store
from realstupid.services.invalidation import InvalidationHook, log_stale_views

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[RealStupidError], int] = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConflictFailed: status.HTTP_409_CONFLICT,
    StorageFailed: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(exc: RealStupidError) -> int:
    if isinstance(exc, VoteFailed):
        return status.HTTP_404_NOT_FOUND if exc.missing_post else status.HTTP_503_SERVICE_UNAVAILABLE
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def install_error_handlers(app: FastAPI) -> None:
    """Translate service errors into JSON responses."""

    @app.exception_handler(RealStupidError)
    async def realstupid_error_handler(request: Request, exc: RealStupidError) -> JSONResponse:
        code = _status_for(exc)
        body: dict[str, object] = {"detail": str(exc)}
        if isinstance(exc, ValidationFailed):
            body["errors"] = exc.errors
        if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return JSONResponse(status_code=code, content=body, headers=headers)


def create_app(
    store: Store | None = None,
    *,
    invalidation_hook: InvalidationHook | None = log_stale_views,
) -> FastAPI:
    """Build the application.

    When no store is injected one is created from settings on startup and
    disposed on shutdown.
    """
    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Two-mode community posting API",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(GZipMiddleware)

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(posts_router, prefix="/api/v1")
    app.include_router(communities_router, prefix="/api/v1")
    install_error_handlers(app)

    app.state.store = store
    app.state.owns_store = store is None
    app.state.invalidation_hook = invalidation_hook

    @app.on_event("startup")
    async def on_startup() -> None:
        if app.state.store is None:
            app.state.store = Store.from_url(
                settings.effective_database_url,
                echo=settings.sql_debug,
            )
            if settings.auto_create_tables:
                app.state.store.create_tables()
            logger.info("Store ready")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if app.state.owns_store and app.state.store is not None:
            app.state.store.dispose()
            app.state.store = None

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": f"{settings.app_name} API",
            "version": __version__,
            "modes": "real, stupid",
            "docs": "/docs",
        }

    return app


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("realstupid.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
