import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from tortoise import Tortoise
from tortoise.contrib.fastapi import tortoise_exception_handlers

from .core.config import DATABASE_URL
from .core.exceptions import register_exception_handlers
from .core.logging_config import configure_logging
from .features.exports.router import router as exports_router
from .features.reports.overrides import ProfitOverrideStore
from .features.reports.router import router as reports_router

configure_logging()
logger = logging.getLogger("lease_reports.main")  # This logger will inherit from 'lease_reports'

TORTOISE_ORM_CONFIG = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {  # This is an app label, can be anything
            "models": ["lease_reports.features.customers.models"],
            "default_connection": "default",
        }
    },
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events, such as connecting to the database.
    """
    logger.info("Starting application...")
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)
    logger.info("Tortoise-ORM has been initialized.")

    yield

    await Tortoise.close_connections()
    logger.info("Tortoise-ORM connections have been closed.")


app = FastAPI(
    title="Lease Reports API",
    description="Financial reports and document exports for a car-leasing business.",
    version="0.1.0",
    exception_handlers=tortoise_exception_handlers(),
    lifespan=lifespan,
)
register_exception_handlers(app)
app.state.profit_overrides = ProfitOverrideStore()


@app.get("/")
async def read_root(request: Request):
    """
    Root endpoint for the API.
    """
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Welcome to the Lease Reports API!"}


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(reports_router, prefix="/api/v1")
app.include_router(exports_router, prefix="/api/v1")
