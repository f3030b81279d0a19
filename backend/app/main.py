import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import api_router
from app.core.config import Settings, get_settings
from app.core.context import AppContext, build_context
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)

# server-to-server callbacks carry no browser Origin semantics
WEBHOOK_PATH_SUFFIXES = (
    "/subscription/webhook",
)
MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """
    App factory. With `context` given (tests), that context is used as-is and
    is not closed on shutdown; otherwise the lifespan builds and closes one.
    """
    settings = settings or (context.settings if context is not None else get_settings())
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if context is not None:
            yield
            return
        app.state.context = build_context(settings)
        try:
            yield
        finally:
            app.state.context.close()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    if context is not None:
        app.state.context = context

    # Frontend allow-list from the environment (comma separated), e.g.
    # BACKEND_CORS_ORIGINS=http://localhost:5173,https://app.catalogpilot.com
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,     # explicit list (local http://localhost:5173, production front end)
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    trusted = set(origins)
    webhook_paths = tuple(settings.API_PREFIX + s for s in WEBHOOK_PATH_SUFFIXES)

    # Origin check for data-changing methods only
    @app.middleware("http")
    async def origin_check(request: Request, call_next):
        if request.url.path.startswith(webhook_paths):
            return await call_next(request)

        if request.method in MUTATING_METHODS:
            origin = request.headers.get("origin")
            # no Origin (curl, health checks, server clients) is let through
            if origin and origin not in trusted:
                logger.warning("origin.rejected origin=%s path=%s", origin, request.url.path)
                return JSONResponse(status_code=403, content={"detail": "Bad Origin"})

        return await call_next(request)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    # root liveness probe (Docker health check)
    @app.get("/")
    def root():
        return {
            "app": settings.PROJECT_NAME,
            "env": settings.ENVIRONMENT,
            "ok": True,
        }

    return app


app = create_app()
