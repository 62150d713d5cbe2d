"""FastAPI application wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import AsyncConnectionPool

from .api.routes import router as v1_router
from .config import get_settings
from .domain.service import AccountService
from .mailer import SmtpEmailSender
from .repository import AccountRepository

settings = get_settings()


def configure_logging() -> None:
    """Install the process-wide logging configuration once at startup."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    configure_logging()
    pool = AsyncConnectionPool(settings.database_url, open=False)
    await pool.open()
    app.state.pool = pool
    service = AccountService(
        AccountRepository(pool),
        SmtpEmailSender(settings),
        settings=settings,
        logger=logging.getLogger("app.accounts"),
    )
    app.state.account_service = service
    try:
        await service.bootstrap_admin()
        yield
    finally:
        await pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


app.include_router(v1_router)
