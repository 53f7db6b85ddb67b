"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cragdesk.api.errors import register_exception_handlers
from cragdesk.api.v1 import router as v1_router
from cragdesk.core.config import Settings, get_settings
from cragdesk.core.csrf import OriginGuardMiddleware
from cragdesk.core.database import build_engine, build_session_factory
from cragdesk.models import Base
from cragdesk.services import build_auth_components
from cragdesk.services.bootstrap import ensure_initial_admin

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    if settings.DATABASE_AUTO_CREATE:
        Base.metadata.create_all(app.state.engine)
    db = app.state.session_factory()
    try:
        ensure_initial_admin(db, settings, app.state.auth.users)
    finally:
        db.close()
    yield
    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application from one immutable Settings value.

    Every component is constructed here and kept on app.state; route
    dependencies read them from there and nothing reads the environment.
    Raises RuntimeError in prod when JWT_SECRET is missing.
    """
    settings = settings or get_settings()
    engine = build_engine(settings)

    app = FastAPI(
        title="Cragdesk API",
        version="0.1.0",
        docs_url="/docs" if settings.APP_ENV == "dev" else None,
        redoc_url="/redoc" if settings.APP_ENV == "dev" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.auth = build_auth_components(settings)

    # Added last so it runs first: CORS answers preflights, then the origin guard.
    app.add_middleware(OriginGuardMiddleware, allowed_origins=settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(v1_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Cragdesk API"}

    logger.info(
        "Application configured: env=%s origins=%s secure_cookies=%s",
        settings.APP_ENV,
        ",".join(settings.allowed_origins),
        settings.cookie_secure,
    )
    return app


app = create_app()
