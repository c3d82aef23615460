"""Single-target page scraper with bounded retry and session recovery."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from playwright.async_api import Page

from src.scanner.errors import NotInitializedError, ScrapeExhaustedError
from .extraction import extract_content
from .models import ScrapeResult, Target
from .session import USER_AGENT, BrowserSession

logger = logging.getLogger(__name__)

EXTRA_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class ScrapePolicy:
    """Timeouts, settle delay and retry budget for page scrapes."""

    navigation_timeout_ms: int = 25000
    default_timeout_ms: int = 30000
    default_delay_ms: int = 2000
    max_delay_ms: int = 3000
    max_retries: int = 2
    retry_delay: float = 2.0

    def settle_delay_ms(self, target: Target) -> int:
        return min(target.custom_delay or self.default_delay_ms, self.max_delay_ms)


class PageScraper:
    """Scrapes one target at a time on a borrowed :class:`BrowserSession`."""

    def __init__(self, policy: ScrapePolicy | None = None) -> None:
        self._policy = policy or ScrapePolicy()
        self.last_attempts = 0

    async def scrape(self, target: Target, session: BrowserSession) -> ScrapeResult:
        """Scrape *target*, retrying up to ``max_retries`` times.

        Raises:
            NotInitializedError: the session was never started or is closed.
            SessionStartError: the session disconnected and could not be restarted.
            ScrapeExhaustedError: every attempt failed.
        """
        if not session.started:
            raise NotInitializedError()

        logger.info("scraping target", extra={"target_name": target.name, "url": target.url})
        await _ensure_alive(session)

        attempts = 0
        while True:
            attempts += 1
            self.last_attempts = attempts
            try:
                return await self._attempt(target, session)
            except Exception as exc:
                if attempts > self._policy.max_retries:
                    logger.error(
                        "scrape attempts exhausted",
                        extra={"url": target.url, "attempts": attempts, "error": str(exc)},
                    )
                    raise ScrapeExhaustedError(target.url, attempts, exc) from exc
                logger.warning(
                    "scrape attempt failed, retrying",
                    extra={
                        "url": target.url,
                        "attempt": attempts,
                        "max_attempts": self._policy.max_retries + 1,
                        "retry_delay": self._policy.retry_delay,
                        "error": str(exc),
                    },
                )
            await asyncio.sleep(self._policy.retry_delay)
            await _ensure_alive(session)

    async def _attempt(self, target: Target, session: BrowserSession) -> ScrapeResult:
        page = await session.new_page()
        try:
            page.set_default_timeout(self._policy.default_timeout_ms)
            page.set_default_navigation_timeout(self._policy.navigation_timeout_ms)
            await page.set_extra_http_headers(EXTRA_HEADERS)

            await page.goto(
                target.url,
                wait_until="domcontentloaded",
                timeout=self._policy.navigation_timeout_ms,
            )

            delay = self._policy.settle_delay_ms(target)
            logger.debug("waiting for content to settle", extra={"url": target.url, "delay_ms": delay})
            await page.wait_for_timeout(delay)

            title = await page.title()
            content = await extract_content(page, target.selectors)
            logger.info(
                "content extracted",
                extra={"url": target.url, "title": title, "content_length": len(content)},
            )

            return ScrapeResult(
                url=target.url,
                name=target.name,
                title=title,
                content=content.strip(),
                scraped_at=datetime.now(timezone.utc).isoformat(),
            )
        finally:
            await _close_page(page)


async def _ensure_alive(session: BrowserSession) -> None:
    if not session.is_alive():
        logger.warning("browser disconnected, reinitializing session")
        await session.start()


async def _close_page(page: Page) -> None:
    try:
        await page.close()
    except Exception:
        logger.warning("error closing page", exc_info=True)
