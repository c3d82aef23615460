"""Scan engine — runs the scraper over the target list and records outcomes."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from src.api.schemas import NotifyPayload, ScanResponse, SiteResult
from src.config import Settings
from src.scanner.browser import ScrapeResult, Scraper, Target, build_scraper
from src.scanner.errors import (
    NotInitializedError,
    RepositoryError,
    ScrapeExhaustedError,
    SessionStartError,
)
from src.scanner.events import (
    SCAN_COMPLETED,
    SCAN_STARTED,
    SITE_COMPLETED,
    SITE_FAILED,
    SITE_STARTED,
    EventCallback,
    emit_event,
)
from src.scanner.notify import Notifier
from src.scanner.result_files import save_results_to_files
from src.storage.redis import ScrapeRepository, extract_domain

logger = logging.getLogger(__name__)

BATCH_URL = "batch-operation"
BATCH_NAME = "Web Scanner Batch"
CONTENT_PLACEHOLDER = "Scraped content's too long to display but it was OK"

# Content is omitted from events and notifications
_SUMMARY_EXCLUDE: dict[str, Any] = {"results": {"__all__": {"content"}}}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class ScanEngine:
    """Scrapes targets one by one; a failing target never stops the batch.

    Only a browser that cannot be started (or restarted) aborts the run.
    The scraper is closed on every exit path.
    """

    def __init__(
        self,
        settings: Settings,
        repository: ScrapeRepository,
        notifier: Notifier | None = None,
        scraper_factory: Callable[[], Scraper] | None = None,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._notifier = notifier
        self._scraper_factory = scraper_factory or (lambda: build_scraper(settings))

    async def run(
        self,
        targets: Sequence[Target],
        on_event: EventCallback | None = None,
    ) -> ScanResponse:
        start = time.monotonic()
        timestamp = _now_iso()
        scraper = self._scraper_factory()
        results: list[SiteResult] = []
        scraped: list[ScrapeResult] = []

        logger.info(
            "scan started",
            extra={"target_count": len(targets), "scraper": type(scraper).__name__},
        )
        await emit_event(on_event, SCAN_STARTED, {"total": len(targets), "timestamp": timestamp})

        try:
            await scraper.initialize()
            for target in targets:
                site, result = await self._scan_target(scraper, target, on_event)
                results.append(site)
                if result is not None:
                    scraped.append(result)
        except Exception as exc:
            logger.exception("scan failed", extra={"sites_attempted": len(results)})
            response = ScanResponse(
                success=False,
                timestamp=timestamp,
                sites_processed=sum(1 for r in results if r.status == "success"),
                total_sites_configured=len(targets),
                results=results,
                execution_time_ms=_elapsed_ms(start),
                error=str(exc),
            )
            await self._save_batch_failure(str(exc), response.execution_time_ms)
            await self._notify(
                NotifyPayload(
                    error=str(exc),
                    message="Failed to execute web scanner",
                    level="error",
                    timestamp=_now_iso(),
                    payload=response.model_dump(exclude=_SUMMARY_EXCLUDE),
                )
            )
            await emit_event(on_event, SCAN_COMPLETED, response.model_dump(exclude=_SUMMARY_EXCLUDE))
            return response
        finally:
            await scraper.close()

        if self._settings.results_dir and scraped:
            save_results_to_files(scraped, timestamp, targets, self._settings.results_dir)

        response = ScanResponse(
            success=True,
            timestamp=timestamp,
            sites_processed=sum(1 for r in results if r.status == "success"),
            total_sites_configured=len(targets),
            results=results,
            execution_time_ms=_elapsed_ms(start),
        )
        logger.info(
            "scan completed",
            extra={
                "sites_processed": response.sites_processed,
                "total_sites": response.total_sites_configured,
                "execution_time_ms": response.execution_time_ms,
            },
        )
        await emit_event(on_event, SCAN_COMPLETED, response.model_dump(exclude=_SUMMARY_EXCLUDE))
        return response

    async def _scan_target(
        self,
        scraper: Scraper,
        target: Target,
        on_event: EventCallback | None,
    ) -> tuple[SiteResult, ScrapeResult | None]:
        site_start = time.monotonic()
        await emit_event(on_event, SITE_STARTED, {"name": target.name, "url": target.url})

        try:
            result = await scraper.scrape(target)
        except (SessionStartError, NotInitializedError):
            raise
        except ScrapeExhaustedError as exc:
            site = await self._record_failure(
                target, str(exc), _elapsed_ms(site_start), exc.attempts - 1, on_event
            )
            return site, None
        except Exception as exc:
            logger.error("unexpected scrape error", extra={"url": target.url}, exc_info=True)
            site = await self._record_failure(
                target, str(exc) or type(exc).__name__, _elapsed_ms(site_start), 0, on_event
            )
            return site, None

        elapsed = _elapsed_ms(site_start)
        retry_count = scraper.last_retry_count
        try:
            record = await self._repository.save_scrape_result(
                result,
                keywords=target.keywords,
                execution_time_ms=elapsed,
                retry_count=retry_count,
            )
        except RepositoryError as exc:
            site = await self._record_failure(target, str(exc), elapsed, retry_count, on_event)
            return site, None

        site = SiteResult(
            name=result.name,
            url=result.url,
            title=result.title,
            content=result.content,
            content_length=len(result.content),
            scraped_at=result.scraped_at,
            keywords=list(target.keywords),
            status="success",
            id=record.id,
            domain=record.domain,
            word_count=record.word_count,
        )
        logger.info(
            "site scraped",
            extra={"target_name": target.name, "title": result.title, "word_count": record.word_count},
        )
        await self._notify(
            NotifyPayload(
                message=f"Successfully scraped <i>{target.name}</i> - {record.word_count} words",
                level="info",
                timestamp=_now_iso(),
                payload={
                    "url": result.url,
                    "name": result.name,
                    "title": result.title,
                    "content": CONTENT_PLACEHOLDER,
                    "scraped_at": result.scraped_at,
                    "word_count": record.word_count,
                    "domain": record.domain,
                },
            )
        )
        await emit_event(on_event, SITE_COMPLETED, site.model_dump(exclude={"content"}))
        return site, result

    async def _record_failure(
        self,
        target: Target,
        error: str,
        elapsed_ms: int,
        retry_count: int,
        on_event: EventCallback | None,
    ) -> SiteResult:
        logger.warning(
            "site failed, continuing with remaining targets",
            extra={"target_name": target.name, "url": target.url, "error": error},
        )
        record = None
        try:
            record = await self._repository.save_failed_scrape(
                target.url,
                target.name,
                error,
                keywords=target.keywords,
                execution_time_ms=elapsed_ms,
                retry_count=retry_count,
            )
        except RepositoryError:
            logger.warning("could not record failed scrape", extra={"url": target.url})

        domain = record.domain if record else extract_domain(target.url)
        site = SiteResult(
            name=target.name,
            url=target.url,
            scraped_at=record.scraped_at if record else _now_iso(),
            keywords=list(target.keywords),
            status="failed",
            error=error,
            id=record.id if record else None,
            domain=domain,
        )
        await self._notify(
            NotifyPayload(
                error=error,
                message=f"Failed to scrape {target.name}",
                level="error",
                timestamp=_now_iso(),
                payload={"name": target.name, "url": target.url, "domain": domain},
            )
        )
        await emit_event(on_event, SITE_FAILED, site.model_dump(exclude={"content"}))
        return site

    async def _save_batch_failure(self, error: str, execution_time_ms: int) -> None:
        try:
            await self._repository.save_failed_scrape(
                BATCH_URL, BATCH_NAME, error, execution_time_ms=execution_time_ms
            )
        except RepositoryError:
            logger.warning("failed to save batch error to repository")

    async def _notify(self, message: NotifyPayload) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send(message)
        except Exception:
            logger.warning("notification failed", extra={"level": message.level}, exc_info=True)
