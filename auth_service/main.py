"""FastAPI application wiring for the account authentication service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from psycopg_pool import AsyncConnectionPool

from .api.routes import install_error_handlers, router as api_router
from .config import ConfigurationError, Settings, get_settings
from .domain.contracts import AccountStore
from .domain.service import AccountService
from .repository import AccountRepository
from .security.passwords import PasswordHasher
from .security.tokens import TokenIssuer

logger = logging.getLogger(__name__)


def build_service(settings: Settings, store: AccountStore) -> AccountService:
    """Assemble the account workflows from process-wide settings and a store."""
    return AccountService(
        store,
        PasswordHasher(rounds=settings.bcrypt_rounds),
        TokenIssuer(
            settings.jwt_secret,
            issuer=settings.jwt_issuer,
            ttl_seconds=settings.jwt_ttl_seconds,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    settings: Settings = app.state.settings
    pool = AsyncConnectionPool(settings.database_url, open=False)
    await pool.open()
    app.state.pool = pool
    app.state.account_service = build_service(settings, AccountRepository(pool))
    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield
    finally:
        await pool.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.settings = settings

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            max_age=600,
        )

    @app.get("/", response_class=PlainTextResponse, tags=["health"])
    def root() -> str:
        return "Backend API is running 🚀"

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    app.include_router(api_router)
    install_error_handlers(app)
    return app


def run() -> None:
    """Serve the application with uvicorn; exits with status 1 when configuration is missing."""
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("refusing to start: %s", exc)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.port)


if __name__ == "__main__":
    run()
