"""Scraper facade — one browser session plus one page scraper."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from .mock import MockScraperService
from .models import ScrapeResult, Target
from .scraper import PageScraper, ScrapePolicy
from .session import BrowserSession

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)


class Scraper(Protocol):
    """Protocol shared by the real and the mock scraper."""

    async def initialize(self) -> None: ...

    async def scrape(self, target: Target) -> ScrapeResult: ...

    async def close(self) -> None: ...

    @property
    def last_retry_count(self) -> int: ...


class ScraperService:
    """Drives a headless Chromium session over a sequence of targets."""

    def __init__(
        self,
        session: BrowserSession | None = None,
        page_scraper: PageScraper | None = None,
    ) -> None:
        self._session = session or BrowserSession()
        self._page_scraper = page_scraper or PageScraper()

    @classmethod
    def from_settings(cls, settings: Settings) -> ScraperService:
        session = BrowserSession(
            headless=settings.browser_headless,
            launch_timeout_ms=settings.browser_launch_timeout_ms,
        )
        policy = ScrapePolicy(
            navigation_timeout_ms=settings.navigation_timeout_ms,
            default_timeout_ms=settings.default_timeout_ms,
            default_delay_ms=settings.default_delay_ms,
            max_delay_ms=settings.max_delay_ms,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay_seconds,
        )
        return cls(session=session, page_scraper=PageScraper(policy))

    @property
    def session(self) -> BrowserSession:
        return self._session

    @property
    def last_retry_count(self) -> int:
        """Retries spent on the most recent ``scrape`` call."""
        return max(self._page_scraper.last_attempts - 1, 0)

    async def initialize(self) -> None:
        logger.info("initializing browser session")
        await self._session.start()

    async def scrape(self, target: Target) -> ScrapeResult:
        return await self._page_scraper.scrape(target, self._session)

    async def close(self) -> None:
        await self._session.stop()

    async def __aenter__(self) -> ScraperService:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def build_scraper(settings: Settings) -> Scraper:
    """Mock scraper for offline/local runs, real browser otherwise."""
    if settings.use_mock_scraper:
        logger.info("using mock scraper", extra={"environment": settings.environment})
        return MockScraperService(delay=settings.mock_delay_seconds)
    return ScraperService.from_settings(settings)
