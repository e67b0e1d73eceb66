"""SheMarket API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MarketError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Uploaded images served from settings.media_dir at settings.media_url_prefix

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers (see api/error_handlers.py): domain, validation, catch-all
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from shemarket.api.error_handlers import register_error_handlers
from shemarket.infrastructure.database import init_db
from shemarket.infrastructure.observability import setup_logging
from shemarket.config import get_settings
from shemarket.api.routes import (
    accounts, auth, conversations, health, listings, orders,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    Path(settings.media_dir).mkdir(parents=True, exist_ok=True)
    logger.info("SheMarket API started")
    yield
    logger.info("SheMarket API shutting down")


app = FastAPI(
    title="SheMarket API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(listings.router)
app.include_router(orders.router)
app.include_router(conversations.router)

# check_dir=False: the directory is created in lifespan, after import
app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=settings.media_dir, check_dir=False),
    name="media",
)

register_error_handlers(app)
