"""Main FastAPI application"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from devpool_sync.api import sync
from devpool_sync.config import settings
from devpool_sync.models.base import init_db
from devpool_sync.scheduler import scheduler


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"Starting devpool sync for {settings.mirror_owner}/{settings.mirror_repo}")
    init_db()
    if settings.scheduler_enabled:
        scheduler.start()
    yield
    # Shutdown
    logger.info("Stopping devpool sync")
    if settings.scheduler_enabled:
        scheduler.stop()


app = FastAPI(
    title="Devpool Sync Service",
    description="Mirror partner repository issues into the devpool directory",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(sync.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Devpool Sync"}
