import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from resume_tailor.analytics.db import init_db, purge_old_records
from resume_tailor.core.scoring_config import get_scoring_config
from resume_tailor.taxonomy import get_default_taxonomy_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    # fail fast on a broken scoring config or taxonomy catalog
    get_scoring_config()
    get_default_taxonomy_provider()
    init_db()

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = purge_old_records()
                if any(deleted.values()):
                    logger.info("analytics_retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover - purge must not take the API down
                logger.warning("analytics_retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=3600)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
