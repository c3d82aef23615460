"""Notification webhook client."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from src.api.schemas import NotifyPayload
from src.scanner.errors import NotifyError

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

SERVICE_SLUG = "webscanner"

_RETRYABLE = (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout, httpx.WriteTimeout, httpx.PoolTimeout)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for exponential-backoff retry on notification POST."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0


_DEFAULT_RETRY = RetryConfig()


class Notifier:
    """Posts scan outcomes to the notification endpoint."""

    def __init__(
        self,
        endpoint: str,
        token: str,
        retry_config: RetryConfig = _DEFAULT_RETRY,
        timeout: float = 10.0,
    ) -> None:
        self._endpoint = endpoint
        self._token = token
        self._retry = retry_config
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> Notifier | None:
        """Return a notifier, or ``None`` when the endpoint is not configured."""
        if not settings.botline_endpoint or not settings.botline_token:
            logger.info("notification endpoint not configured, notifications disabled")
            return None
        return cls(settings.botline_endpoint, settings.botline_token)

    def build_body(self, message: NotifyPayload) -> dict[str, Any]:
        body = message.model_dump()
        body["service"] = SERVICE_SLUG
        if not body.get("token"):
            body["token"] = self._token
        return body

    async def send(self, message: NotifyPayload) -> Any:
        """POST *message* and return the decoded JSON response.

        Network errors are retried with exponential backoff; an error
        status is not retried and raises :class:`NotifyError`.
        """
        body = self.build_body(message)
        headers = {"x-request-token": self._token}

        for attempt in range(1 + self._retry.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(self._endpoint, json=body, headers=headers)
            except _RETRYABLE as exc:
                if attempt >= self._retry.max_retries:
                    raise NotifyError(
                        f"notification failed after {attempt + 1} attempts: {exc}"
                    ) from exc
                delay = min(self._retry.base_delay * (2 ** attempt), self._retry.max_delay)
                logger.warning(
                    "notify POST to %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    self._endpoint, attempt + 1, self._retry.max_retries + 1, delay, exc,
                )
                await asyncio.sleep(delay)
                continue

            if resp.is_error:
                raise NotifyError(f"POST failed: {resp.status_code} {resp.text}")
            return resp.json()
