"""POST /scans, GET /scrapes*, GET /stats endpoint handlers."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sse_starlette.sse import EventSourceResponse

from src.api.schemas import ScanRequest, ScanResponse, ScrapeRecord, ScrapeStats
from src.api.service import run_scan, stream_scan
from src.auth.dependencies import require_api_key
from src.scanner.browser import Target
from src.scanner.engine import ScanEngine
from src.scanner.errors import RepositoryError, ScanInProgressError
from src.scanner.targets import select_targets
from src.storage.redis import ScrapeRepository

router = APIRouter(dependencies=[Depends(require_api_key)])

T = TypeVar("T")


def _get_engine(request: Request) -> ScanEngine:
    return request.app.state.engine


def _get_repository(request: Request) -> ScrapeRepository:
    return request.app.state.repository


def _get_targets(request: Request) -> list[Target]:
    return request.app.state.targets


def _get_scan_lock(request: Request) -> asyncio.Lock:
    return request.app.state.scan_lock


async def _from_store(awaitable: Awaitable[T]) -> T:
    try:
        return await awaitable
    except RepositoryError as exc:
        raise HTTPException(status_code=503, detail="Scrape store unavailable") from exc


@router.post("/scans", response_model=None)
async def create_scan(
    body: ScanRequest,
    engine: ScanEngine = Depends(_get_engine),
    targets: list[Target] = Depends(_get_targets),
    lock: asyncio.Lock = Depends(_get_scan_lock),
) -> ScanResponse | EventSourceResponse:
    selected = select_targets(targets, body.names)
    if not selected:
        raise HTTPException(status_code=404, detail="No configured target matches the requested names")

    if lock.locked():
        raise HTTPException(status_code=409, detail="A scan is already running")

    if body.mode == "stream":
        return EventSourceResponse(stream_scan(engine, selected, lock))

    try:
        return await run_scan(engine, selected, lock)
    except ScanInProgressError as exc:
        raise HTTPException(status_code=409, detail="A scan is already running") from exc


@router.get("/scrapes")
async def list_scrapes(
    domain: str | None = None,
    url: str | None = None,
    name: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    repository: ScrapeRepository = Depends(_get_repository),
) -> list[ScrapeRecord]:
    filters = [f for f in (domain, url, name) if f]
    if len(filters) != 1:
        raise HTTPException(status_code=422, detail="Exactly one of domain, url or name is required")

    if domain:
        return await _from_store(repository.get_latest_by_domain(domain, limit=limit))
    if url:
        return await _from_store(repository.get_history_by_url(url, limit=limit))
    return await _from_store(repository.get_history_by_name(name, limit=limit))


@router.get("/scrapes/recent")
async def recent_scrapes(
    days: int = Query(7, ge=1, le=365),
    repository: ScrapeRepository = Depends(_get_repository),
) -> list[ScrapeRecord]:
    return await _from_store(repository.get_recent_successful_scrapes(days))


@router.get("/scrapes/{record_id}")
async def get_scrape(
    record_id: str,
    repository: ScrapeRepository = Depends(_get_repository),
) -> ScrapeRecord:
    record = await _from_store(repository.get(record_id))
    if record is None:
        raise HTTPException(status_code=404, detail="Scrape record not found")
    return record


@router.get("/stats")
async def stats(
    days: int = Query(30, ge=1, le=365),
    repository: ScrapeRepository = Depends(_get_repository),
) -> ScrapeStats:
    return await _from_store(repository.get_stats(days))
