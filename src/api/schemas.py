"""Request/response Pydantic models."""

from typing import Any, Literal

from pydantic import BaseModel


class ScanRequest(BaseModel):
    mode: Literal["wait", "stream"] = "wait"
    names: list[str] | None = None


class ScrapeRecord(BaseModel):
    id: str
    url: str
    name: str
    domain: str
    title: str = ""
    content: str = ""
    content_hash: str = ""
    word_count: int = 0
    scraped_at: str
    status: Literal["success", "failed"]
    keywords: list[str] = []
    error: str | None = None
    execution_time_ms: int | None = None
    retry_count: int = 0


class SiteResult(BaseModel):
    name: str
    url: str
    title: str = ""
    content: str = ""
    content_length: int = 0
    scraped_at: str
    keywords: list[str] = []
    status: Literal["success", "failed"]
    error: str | None = None
    id: str | None = None
    domain: str | None = None
    word_count: int | None = None


class ScanResponse(BaseModel):
    success: bool
    timestamp: str
    sites_processed: int = 0
    total_sites_configured: int = 0
    results: list[SiteResult] = []
    execution_time_ms: int = 0
    error: str | None = None


class ScrapeStats(BaseModel):
    total_scrapes: int = 0
    successful_scrapes: int = 0
    failed_scrapes: int = 0
    unique_domains: list[str] = []
    recent_scrapes: list[ScrapeRecord] = []


class NotifyPayload(BaseModel):
    error: str = ""
    message: str
    level: Literal["info", "warning", "error", "critical"]
    timestamp: str | None = None
    payload: dict[str, Any] | None = None
    token: str | None = None
