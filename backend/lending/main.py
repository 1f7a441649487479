"""Lending API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LendingError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and job scheduler set up in the lifespan, torn down in reverse order

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Scheduler lives on app.state so the jobs routes reach the running instance
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lending.api.error_handlers import register_error_handlers
from lending.api.routes import health, jobs, reservations, wallets
from lending.config import get_settings
from lending.infrastructure import database
from lending.infrastructure.clock import SystemClock
from lending.infrastructure.notifications import LogNotificationDispatcher
from lending.infrastructure.observability import setup_logging
from lending.services.jobs import build_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    scheduler = build_scheduler(
        settings, SystemClock(), LogNotificationDispatcher(settings.email_from),
    )
    app.state.scheduler = scheduler
    if settings.scheduler_enabled:
        await scheduler.start()
    logger.info("Lending API started")
    yield
    logger.info("Lending API shutting down")
    await scheduler.stop()
    if database.db_manager is not None:
        await database.db_manager.dispose()


app = FastAPI(title="Lending API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(reservations.router)
app.include_router(wallets.router)
app.include_router(jobs.router)

register_error_handlers(app)
