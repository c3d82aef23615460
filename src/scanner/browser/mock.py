"""Browser-free scraper used for local development."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from src.scanner.errors import NotInitializedError
from .models import ScrapeResult, Target

logger = logging.getLogger(__name__)


class MockScraperService:
    """Returns canned content for every target without launching a browser."""

    last_retry_count = 0

    def __init__(self, delay: float = 1.0) -> None:
        self._delay = delay
        self._initialized = False

    async def initialize(self) -> None:
        logger.info("initializing mock scraper")
        self._initialized = True

    async def scrape(self, target: Target) -> ScrapeResult:
        if not self._initialized:
            raise NotInitializedError()

        logger.info("mock scraping target", extra={"target_name": target.name, "url": target.url})
        await asyncio.sleep(self._delay)

        delay = target.custom_delay if target.custom_delay is not None else "none"
        selectors = ", ".join(target.selectors) or "none"
        content = (
            f"This is mock content for {target.name}.\n"
            f"In a real scenario, this would contain the scraped content from {target.url}.\n"
            f"Custom delay: {delay}\n"
            f"Custom selectors: {selectors}"
        )
        return ScrapeResult(
            url=target.url,
            name=target.name,
            title=f"Mock Title for {target.name}",
            content=content,
            scraped_at=datetime.now(timezone.utc).isoformat(),
        )

    async def close(self) -> None:
        logger.info("closing mock scraper")
        self._initialized = False
