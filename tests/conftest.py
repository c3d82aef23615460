"""Fixtures — in-memory Redis repository and fake Playwright objects."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from src.scanner.browser.extraction import BODY_TEXT_JS, QUERY_TEXTS_JS, REMOVE_ELEMENTS_JS
from src.storage.redis import ScrapeRepository


@pytest_asyncio.fixture
async def redis_client():
    client = FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def repository(redis_client):
    """ScrapeRepository backed by an in-memory FakeRedis instance."""
    return ScrapeRepository(redis_client)


class FakePage:
    """Stands in for a Playwright page; ``dom`` maps selector -> textContent."""

    def __init__(
        self,
        title: str = "",
        dom: dict[str, str] | None = None,
        body: str = "",
        goto_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self._title = title
        self.dom = dict(dom or {})
        self.body = body
        self.goto_error = goto_error
        self.close_error = close_error
        self.closed = False
        self.goto_calls: list[tuple[str, dict]] = []
        self.waits: list[int] = []
        self.removed: list[str] = []
        self.headers: dict[str, str] | None = None
        self.default_timeout: int | None = None
        self.navigation_timeout: int | None = None

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeout = timeout

    async def set_extra_http_headers(self, headers: dict[str, str]) -> None:
        self.headers = headers

    async def goto(self, url: str, **kwargs):
        self.goto_calls.append((url, kwargs))
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    async def title(self) -> str:
        return self._title

    async def evaluate(self, expression: str, arg=None):
        if expression == QUERY_TEXTS_JS:
            return [self.dom.get(selector) for selector in arg]
        if expression == REMOVE_ELEMENTS_JS:
            for selector in arg:
                self.dom.pop(selector, None)
            self.removed.extend(arg)
            return None
        if expression == BODY_TEXT_JS:
            return self.body
        raise AssertionError(f"unexpected script: {expression!r}")

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeSession:
    """Stands in for BrowserSession; ``pages`` are handed out (or raised) in order."""

    def __init__(self, pages=(), *, alive: bool = True, started: bool = True) -> None:
        self.pages = list(pages)
        self.alive = alive
        self.started = started
        self.start_error: Exception | None = None
        self.start_calls = 0
        self.stop_calls = 0
        self.new_page_calls = 0

    def is_alive(self) -> bool:
        return self.alive

    async def start(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        self.alive = True
        self.started = True

    async def stop(self) -> None:
        self.stop_calls += 1
        self.started = False

    async def new_page(self):
        self.new_page_calls += 1
        item = self.pages.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_browser(connected: bool = True, new_page_error: Exception | None = None) -> MagicMock:
    browser = MagicMock()
    browser.is_connected = MagicMock(return_value=connected)
    probe_page = MagicMock()
    probe_page.close = AsyncMock()
    browser.new_page = AsyncMock(side_effect=new_page_error, return_value=probe_page)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def fake_playwright():
    """A Playwright driver whose ``chromium.launch`` is an AsyncMock."""
    driver = MagicMock()
    driver.chromium.launch = AsyncMock()
    driver.stop = AsyncMock()
    return driver


@pytest.fixture
def playwright_factory(fake_playwright):
    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=fake_playwright)
    return factory
