from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from datastore.stores import build_default_entity_store, build_default_summary_store
from logging_config import configure_logging
from services.scheduler import build_default_scheduler
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Opening the stores here makes an unreadable store fail startup.
    build_default_entity_store()
    build_default_summary_store()
    scheduler = build_default_scheduler()
    if get_settings().sampler_enabled:
        scheduler.start()
    else:
        logger.info("Sampler disabled; serving stored data only")
    try:
        yield
    finally:
        scheduler.shutdown()
        build_default_scheduler.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Weather Sampler",
        description="Samples current weather per city and serves running and daily statistics.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent.parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
