"""Headless Chromium session — launch with fallback flag sets, probe, teardown."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable

from playwright.async_api import Browser, Page, Playwright, async_playwright

from src.scanner.errors import NotInitializedError, SessionStartError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)


class SessionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DISCONNECTED = "disconnected"
    CLOSED = "closed"


@dataclass(frozen=True)
class LaunchConfig:
    """A named set of Chromium command-line flags."""

    name: str
    args: tuple[str, ...]


# Tried in order; sandboxed containers reject some flag combinations
# intermittently, so each fallback is smaller than the one before.
DEFAULT_LAUNCH_CONFIGS: tuple[LaunchConfig, ...] = (
    LaunchConfig(
        name="full",
        args=(
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--memory-pressure-off",
            "--disable-background-timer-throttling",
            "--disable-backgrounding-occluded-windows",
            "--disable-renderer-backgrounding",
            "--disable-features=TranslateUI,BlinkGenPropertyTrees",
            "--disable-ipc-flooding-protection",
            "--disable-extensions",
            "--disable-default-apps",
            "--disable-sync",
            "--no-first-run",
            "--no-default-browser-check",
            "--disable-plugins",
            "--window-size=1280,720",
            f"--user-agent={USER_AGENT}",
        ),
    ),
    LaunchConfig(
        name="minimal",
        args=(
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--single-process",
            "--no-zygote",
        ),
    ),
    LaunchConfig(name="bare", args=("--no-sandbox",)),
)


class BrowserSession:
    """Owns one Chromium process and tracks whether it is usable.

    ``start()`` may be called again after the browser disconnects; it
    releases the dead handle and launches a fresh process.
    """

    def __init__(
        self,
        launch_configs: tuple[LaunchConfig, ...] = DEFAULT_LAUNCH_CONFIGS,
        *,
        headless: bool = True,
        launch_timeout_ms: int = 30000,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        if not launch_configs:
            raise ValueError("at least one launch configuration is required")
        self._launch_configs = launch_configs
        self._headless = headless
        self._launch_timeout_ms = launch_timeout_ms
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._state = SessionState.UNINITIALIZED

    @property
    def state(self) -> SessionState:
        if self._state is SessionState.READY and not self.is_alive():
            return SessionState.DISCONNECTED
        return self._state

    @property
    def started(self) -> bool:
        """True between a successful ``start()`` and ``stop()``."""
        return self._state is SessionState.READY

    def is_alive(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> None:
        """Launch Chromium using the first launch config that passes a probe."""
        await self._release_browser()
        if self._playwright is None:
            try:
                self._playwright = await self._playwright_factory().start()
            except Exception as exc:
                raise SessionStartError(exc) from exc

        last_error: BaseException | None = None
        for config in self._launch_configs:
            browser: Browser | None = None
            try:
                browser = await self._playwright.chromium.launch(
                    headless=self._headless,
                    args=list(config.args),
                    timeout=self._launch_timeout_ms,
                )
                await self._probe(browser)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "browser launch failed",
                    extra={"launch_config": config.name, "error": str(exc)},
                )
                if browser is not None:
                    await _close_quietly(browser)
                continue

            self._browser = browser
            self._state = SessionState.READY
            logger.info("browser session started", extra={"launch_config": config.name})
            return

        raise SessionStartError(last_error) from last_error

    async def new_page(self) -> Page:
        if self.state is not SessionState.READY:
            raise NotInitializedError(f"browser session is {self.state.value}")
        return await self._browser.new_page()

    async def stop(self) -> None:
        """Close the browser and the Playwright driver. Never raises."""
        await self._release_browser()
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception:
                logger.warning("error stopping playwright", exc_info=True)
            self._playwright = None
        if self._state is not SessionState.CLOSED:
            logger.info("browser session closed")
        self._state = SessionState.CLOSED

    async def _probe(self, browser: Browser) -> None:
        page = await browser.new_page()
        await page.close()

    async def _release_browser(self) -> None:
        if self._browser is None:
            return
        browser, self._browser = self._browser, None
        await _close_quietly(browser)


async def _close_quietly(browser: Browser) -> None:
    try:
        await browser.close()
    except Exception:
        logger.warning("error closing browser", exc_info=True)
