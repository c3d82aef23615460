"""Service layer — runs scans for the API routes, one at a time."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Sequence

from src.api.schemas import ScanResponse
from src.scanner.browser import Target
from src.scanner.engine import ScanEngine
from src.scanner.errors import ScanInProgressError

logger = logging.getLogger(__name__)

# Strong references so running scans are not garbage collected
_background_tasks: set[asyncio.Task] = set()


async def run_scan(
    engine: ScanEngine,
    targets: Sequence[Target],
    lock: asyncio.Lock,
) -> ScanResponse:
    """Run a scan to completion, refusing to start while another is running."""
    if lock.locked():
        raise ScanInProgressError("a scan is already running")
    async with lock:
        logger.info("scan requested", extra={"target_count": len(targets)})
        return await engine.run(targets)


async def stream_scan(
    engine: ScanEngine,
    targets: Sequence[Target],
    lock: asyncio.Lock,
) -> AsyncGenerator[dict[str, str], None]:
    """Yield SSE-formatted scan progress events.

    If the client disconnects, the scan continues in the background so
    every outcome still gets recorded.
    """
    queue: asyncio.Queue[tuple[str, dict[str, Any]] | None] = asyncio.Queue()

    async def on_event(event: str, data: dict[str, Any]) -> None:
        await queue.put((event, data))

    async def run_and_signal_done() -> None:
        try:
            if lock.locked():
                await queue.put(("error", {"message": "A scan is already running"}))
                return
            async with lock:
                await engine.run(targets, on_event=on_event)
        except Exception:
            logger.exception("streaming scan failed")
            await queue.put(("error", {"message": "Scan failed"}))
        finally:
            await queue.put(None)  # sentinel

    task = asyncio.create_task(run_and_signal_done())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    while True:
        item = await queue.get()
        if item is None:
            break
        event, data = item
        yield {"event": event, "data": json.dumps(data)}
