"""Redis scrape repository — records plus domain/url/name history indexes."""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import redis.asyncio as redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from src.api.schemas import ScrapeRecord, ScrapeStats
from src.scanner.browser.models import ScrapeResult
from src.scanner.errors import RepositoryError

logger = logging.getLogger(__name__)

RECORD_PREFIX = "scrape:"
INDEX_ALL = "scrapes:all"
INDEX_DOMAIN_PREFIX = "scrapes:domain:"
INDEX_URL_PREFIX = "scrapes:url:"
INDEX_NAME_PREFIX = "scrapes:name:"

UNKNOWN_DOMAIN = "unknown-domain"


def extract_domain(url: str) -> str:
    hostname = urlparse(url).hostname
    if not hostname:
        logger.warning("invalid url format", extra={"url": url})
        return UNKNOWN_DOMAIN
    return hostname.removeprefix("www.")


def content_hash(content: str) -> str:
    """Hash used to detect content changes between scrapes."""
    return hashlib.sha256(content.strip().lower().encode("utf-8")).hexdigest()[:16]


def count_words(content: str) -> int:
    return len(content.split())


def _short_hash(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:10]


def generate_id(url: str, timestamp: str) -> str:
    return f"{_short_hash(url)}-{_short_hash(timestamp)}"


def _score(timestamp: str) -> float:
    return datetime.fromisoformat(timestamp).timestamp()


class ScrapeRepository:
    """Stores scrape records in Redis and answers history queries.

    Each record is a JSON string under ``scrape:<id>``; sorted sets scored
    by scrape time index records globally and per domain, URL and name.
    """

    def __init__(self, client: redis.Redis, ttl: int = 0) -> None:
        self._client = client
        self._ttl = ttl

    async def save_scrape_result(
        self,
        result: ScrapeResult,
        *,
        keywords: list[str] | tuple[str, ...] = (),
        execution_time_ms: int | None = None,
        retry_count: int = 0,
    ) -> ScrapeRecord:
        """Persist a successful scrape and return the stored record."""
        record = ScrapeRecord(
            id=generate_id(result.url, result.scraped_at),
            url=result.url,
            name=result.name,
            domain=extract_domain(result.url),
            title=result.title,
            content=result.content,
            content_hash=content_hash(result.content),
            word_count=count_words(result.content),
            scraped_at=result.scraped_at,
            status="success",
            keywords=list(keywords),
            execution_time_ms=execution_time_ms,
            retry_count=retry_count,
        )
        await self._put(record)
        logger.info("scrape result saved", extra={"record_id": record.id, "url": record.url})
        return record

    async def save_failed_scrape(
        self,
        url: str,
        name: str,
        error: str,
        *,
        keywords: list[str] | tuple[str, ...] = (),
        execution_time_ms: int | None = None,
        retry_count: int = 0,
    ) -> ScrapeRecord:
        """Persist a failed scrape attempt and return the stored record."""
        scraped_at = datetime.now(timezone.utc).isoformat()
        record = ScrapeRecord(
            id=generate_id(url, scraped_at),
            url=url,
            name=name,
            domain=extract_domain(url),
            scraped_at=scraped_at,
            status="failed",
            error=error,
            keywords=list(keywords),
            execution_time_ms=execution_time_ms,
            retry_count=retry_count,
        )
        await self._put(record)
        logger.info("failed scrape saved", extra={"record_id": record.id, "url": url})
        return record

    async def get(self, record_id: str) -> ScrapeRecord | None:
        try:
            raw = await self._client.get(f"{RECORD_PREFIX}{record_id}")
        except redis.RedisError as exc:
            logger.warning("record get failed", extra={"record_id": record_id}, exc_info=True)
            raise RepositoryError(f"failed to get record {record_id}: {exc}") from exc
        if raw is None:
            return None
        return ScrapeRecord.model_validate_json(raw)

    async def get_latest_by_domain(self, domain: str, limit: int = 10) -> list[ScrapeRecord]:
        return await self._query(f"{INDEX_DOMAIN_PREFIX}{domain}", limit)

    async def get_history_by_url(self, url: str, limit: int = 20) -> list[ScrapeRecord]:
        return await self._query(f"{INDEX_URL_PREFIX}{url}", limit)

    async def get_history_by_name(self, name: str, limit: int = 20) -> list[ScrapeRecord]:
        return await self._query(f"{INDEX_NAME_PREFIX}{name}", limit)

    async def has_content_changed(self, url: str, current_content: str) -> bool:
        """Compare *current_content* against the latest record for *url*.

        Returns ``True`` when there is no history or the lookup fails.
        """
        try:
            history = await self.get_history_by_url(url, limit=1)
        except RepositoryError:
            logger.warning("content change check failed", extra={"url": url})
            return True
        if not history:
            return True
        return history[0].content_hash != content_hash(current_content)

    async def get_recent_successful_scrapes(self, days: int = 7) -> list[ScrapeRecord]:
        records = await self._recent(days)
        return [r for r in records if r.status == "success"]

    async def get_stats(self, days: int = 30) -> ScrapeStats:
        """Summarize records from the last *days* days."""
        records = await self._recent(days)
        domains: list[str] = []
        for record in records:
            if record.domain not in domains:
                domains.append(record.domain)
        return ScrapeStats(
            total_scrapes=len(records),
            successful_scrapes=sum(1 for r in records if r.status == "success"),
            failed_scrapes=sum(1 for r in records if r.status == "failed"),
            unique_domains=domains,
            recent_scrapes=records[:10],
        )

    async def _put(self, record: ScrapeRecord) -> None:
        score = _score(record.scraped_at)
        indexes = (
            INDEX_ALL,
            f"{INDEX_DOMAIN_PREFIX}{record.domain}",
            f"{INDEX_URL_PREFIX}{record.url}",
            f"{INDEX_NAME_PREFIX}{record.name}",
        )
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(
                    f"{RECORD_PREFIX}{record.id}",
                    record.model_dump_json(),
                    ex=self._ttl or None,
                )
                for index in indexes:
                    pipe.zadd(index, {record.id: score})
                if self._ttl:
                    # Drop ids whose records have already expired
                    cutoff = datetime.now(timezone.utc).timestamp() - self._ttl
                    for index in indexes:
                        pipe.zremrangebyscore(index, "-inf", cutoff)
                await pipe.execute()
        except redis.RedisError as exc:
            logger.warning("record save failed", extra={"url": record.url}, exc_info=True)
            raise RepositoryError(f"failed to save scrape record: {exc}") from exc

    async def _query(self, index: str, limit: int) -> list[ScrapeRecord]:
        try:
            ids = await self._client.zrevrange(index, 0, limit - 1)
            return await self._load(ids)
        except redis.RedisError as exc:
            logger.warning("history query failed", extra={"index": index}, exc_info=True)
            raise RepositoryError(f"failed to query {index}: {exc}") from exc

    async def _recent(self, days: int) -> list[ScrapeRecord]:
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).timestamp()
        try:
            ids = await self._client.zrevrangebyscore(INDEX_ALL, "+inf", cutoff)
            return await self._load(ids)
        except redis.RedisError as exc:
            logger.warning("recent scrapes query failed", exc_info=True)
            raise RepositoryError(f"failed to get recent scrapes: {exc}") from exc

    async def _load(self, ids: list[str]) -> list[ScrapeRecord]:
        if not ids:
            return []
        raws = await self._client.mget([f"{RECORD_PREFIX}{record_id}" for record_id in ids])
        # Expired ids stay indexed until the next save prunes them
        return [ScrapeRecord.model_validate_json(raw) for raw in raws if raw is not None]


async def create_redis_client(redis_url: str) -> redis.Redis:
    # Strip credentials for logging (everything before @ if present)
    safe_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info("connecting to redis", extra={"redis_url": safe_url})
    retry = Retry(ExponentialBackoff(), retries=3)
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
        retry=retry,
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )
