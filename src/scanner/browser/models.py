"""Data models for the browser scraping core."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Target:
    """One configured page to scrape."""

    url: str
    name: str
    custom_delay: int | None = None  # settle delay in milliseconds
    selectors: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


@dataclass
class ScrapeResult:
    """Text extracted from a single successful scrape."""

    url: str
    name: str
    title: str = ""
    content: str = ""
    scraped_at: str = ""
