"""Background autosave loop for open wizard sessions.

Uses FastAPI's lifespan context to start/stop an asyncio background loop.
No external scheduler: a plain asyncio.sleep loop fires every
`autosave_interval_seconds` and ticks each open session's autosave
controller, which writes only drafts that are dirty and titled.

Usage:
    from reportstudio.services.scheduler import lifespan
    app = FastAPI(lifespan=lifespan, ...)

Configuration:
    AUTOSAVE_INTERVAL_SECONDS=30   (via .env)
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reportstudio.config import settings
from reportstudio.database import Base, engine
from reportstudio.deps import get_registry
from reportstudio.services.registry import WizardRegistry

logger = logging.getLogger("reportstudio.scheduler")


async def _autosave_loop(registry: WizardRegistry, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            saved = await registry.autosave_all()
            if saved:
                logger.info("Autosaved %d of %d open drafts", saved, len(registry))
        except Exception:
            logger.exception("Unhandled error in autosave loop")


async def _ensure_tables() -> None:
    """Create any missing tables so a fresh database works without Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan: start the autosave loop on startup, stop on shutdown."""
    import reportstudio.models  # noqa: F401  register tables on Base

    await _ensure_tables()
    registry = get_registry()
    task = asyncio.create_task(
        _autosave_loop(registry, settings.autosave_interval_seconds)
    )
    logger.info("Autosave loop started (every %ss)", settings.autosave_interval_seconds)
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        await registry.shutdown()
        logger.info("Autosave loop stopped")
