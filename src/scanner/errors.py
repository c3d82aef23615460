"""Exception hierarchy for the scanner."""

from __future__ import annotations


class ScannerError(Exception):
    """Base class for all scanner errors."""


class SessionStartError(ScannerError):
    """No browser launch configuration produced a live session."""

    def __init__(self, last_error: BaseException | None) -> None:
        self.last_error = last_error
        super().__init__(f"could not start browser session: {last_error}")


class NotInitializedError(ScannerError):
    """A scrape was requested before the session was started (or after it closed)."""

    def __init__(self, message: str = "Browser not initialized. Call initialize() first.") -> None:
        super().__init__(message)


class ScrapeExhaustedError(ScannerError):
    """A single target kept failing until the retry budget ran out."""

    def __init__(self, url: str, attempts: int, last_error: BaseException) -> None:
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"scraping {url} failed after {attempts} attempts: {last_error}")


class RepositoryError(ScannerError):
    """The scrape record store could not complete an operation."""


class NotifyError(ScannerError):
    """The notification webhook rejected a message."""


class ScanInProgressError(ScannerError):
    """Another scan already holds the browser."""
