"""Headless-browser scraping core: session lifecycle, page scraping, extraction."""

from __future__ import annotations

from .mock import MockScraperService
from .models import ScrapeResult, Target
from .scraper import PageScraper, ScrapePolicy
from .service import Scraper, ScraperService, build_scraper
from .session import DEFAULT_LAUNCH_CONFIGS, BrowserSession, LaunchConfig, SessionState

__all__ = [
    "DEFAULT_LAUNCH_CONFIGS",
    "BrowserSession",
    "LaunchConfig",
    "MockScraperService",
    "PageScraper",
    "ScrapePolicy",
    "ScrapeResult",
    "Scraper",
    "ScraperService",
    "SessionState",
    "Target",
    "build_scraper",
]
