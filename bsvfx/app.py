"""
bsvfx Web API - FastAPI entry point.

Usage:
    uvicorn bsvfx.app:app --host 0.0.0.0 --port 8000

The lifespan owns the database, settings and the one converter the routes use:
the converter is initialized on startup and disposed on shutdown.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bsvfx.api.routers import (
    cache_router,
    conversion_router,
    currency_router,
    exchange_rates_router,
    system_router,
)
from bsvfx.converter import create_converter
from bsvfx.database import Database
from bsvfx.settings import Settings
from bsvfx.version import VERSION

logger = logging.getLogger(__name__)

# Set by main.py before uvicorn imports the app
DB_PATH_ENV = "BSVFX_DB_PATH"


def create_app(db_path: Optional[str] = None) -> FastAPI:
    """Build the application. db_path defaults to $BSVFX_DB_PATH, then data/bsvfx.db."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize services on startup, cleanup on shutdown."""
        db = Database(db_path or os.environ.get(DB_PATH_ENV))
        await db.connect()

        settings = Settings(db)
        await settings.init_defaults()

        converter = await create_converter(settings)
        try:
            await converter.initialize()
            logger.info("Exchange rates synced")
        except Exception as e:
            # Serve anyway: /exchange-rates/sync can retry and conversions report the missing rates
            logger.error(f"Converter initialization failed: {e}")

        app.state.db = db
        app.state.settings = settings
        app.state.converter = converter

        yield

        converter.dispose()
        await db.close()
        logger.info("Shutdown complete")

    app = FastAPI(title="bsvfx", version=VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system_router)
    app.include_router(exchange_rates_router, prefix="/api")
    app.include_router(conversion_router, prefix="/api")
    app.include_router(currency_router, prefix="/api")
    app.include_router(cache_router, prefix="/api")
    return app


app = create_app()
