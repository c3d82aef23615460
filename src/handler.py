"""Scheduled-job entrypoint — one scan per invocation."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from src.api.schemas import ScanResponse
from src.config import get_settings
from src.logging_config import setup_logging
from src.scanner.engine import ScanEngine
from src.scanner.notify import Notifier
from src.scanner.targets import load_targets
from src.storage.redis import ScrapeRepository, create_redis_client

logger = logging.getLogger(__name__)


async def run_scan() -> ScanResponse:
    """Scan every configured target once."""
    settings = get_settings()
    targets = load_targets(settings.targets_file)

    redis_client = await create_redis_client(settings.redis_url)
    try:
        engine = ScanEngine(
            settings,
            repository=ScrapeRepository(redis_client, ttl=settings.record_ttl_seconds),
            notifier=Notifier.from_settings(settings),
        )
        return await engine.run(targets)
    finally:
        await redis_client.aclose()


def handler(event: dict[str, Any] | None, context: Any = None) -> dict[str, Any]:
    """Run a scan and return a ``{statusCode, body}`` response."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("scheduled scan invoked", extra={"event": json.dumps(event or {}, default=str)})

    try:
        response = asyncio.run(run_scan())
    except Exception as exc:
        logger.exception("scheduled scan failed before completing")
        response = ScanResponse(
            success=False,
            timestamp=datetime.now(timezone.utc).isoformat(),
            error=str(exc) or type(exc).__name__,
        )

    return {
        "statusCode": 200 if response.success else 500,
        "body": response.model_dump_json(),
    }


if __name__ == "__main__":
    print(json.dumps(handler({"source": "local"}), indent=2))
