"""FastAPI app entrypoint."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.routes import router
from src.config import get_settings
from src.logging_config import setup_logging
from src.scanner.engine import ScanEngine
from src.scanner.notify import Notifier
from src.scanner.targets import load_targets
from src.storage.redis import ScrapeRepository, create_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Initialize logging FIRST so all subsequent operations produce JSON logs
    setup_logging(settings.log_level)
    logger.info("starting web scanner service")

    redis_client = await create_redis_client(settings.redis_url)
    repository = ScrapeRepository(redis_client, ttl=settings.record_ttl_seconds)
    notifier = Notifier.from_settings(settings)
    engine = ScanEngine(settings, repository=repository, notifier=notifier)

    # Attach to app state for dependency injection
    app.state.settings = settings
    app.state.repository = repository
    app.state.engine = engine
    app.state.targets = load_targets(settings.targets_file)
    app.state.scan_lock = asyncio.Lock()

    logger.info(
        "web scanner service ready",
        extra={
            "target_count": len(app.state.targets),
            "mock_scraper": settings.use_mock_scraper,
            "notifications": notifier is not None,
        },
    )

    yield

    # Cleanup
    logger.info("shutting down web scanner service")
    await redis_client.aclose()


app = FastAPI(title="Web Scanner", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
