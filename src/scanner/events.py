"""Progress events emitted while a scan runs."""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

# Async callback receiving (event name, JSON-serializable data).
EventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]

SCAN_STARTED = "started"
SITE_STARTED = "site_started"
SITE_COMPLETED = "site_completed"
SITE_FAILED = "site_failed"
SCAN_COMPLETED = "completed"


async def emit_event(
    on_event: EventCallback | None,
    event: str,
    data: dict[str, Any] | None = None,
) -> None:
    """Forward a scan event to *on_event*; a failing listener never stops the scan."""
    if on_event is None:
        return
    try:
        await on_event(event, data or {})
    except Exception:
        logger.warning("scan event listener failed", extra={"event": event}, exc_info=True)
