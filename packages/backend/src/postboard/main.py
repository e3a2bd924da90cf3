"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Lifespan manages
startup/shutdown of the database engine. Middleware, CORS, routers and
the terminal error handlers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from postboard import __version__
from postboard.api import api_router
from postboard.config import settings
from postboard.errors import install_error_handlers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    The schema is created by `postboard init-db`, not here.
    """
    logger.info(
        "postboard.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("postboard.shutdown")

    from postboard.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Postboard",
        description="Users, posts and admin API with JWT auth and role-based access control",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from postboard.middleware.request_id import RequestIdMiddleware
    from postboard.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    install_error_handlers(app)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: postboard.main:app)
app = create_app()
