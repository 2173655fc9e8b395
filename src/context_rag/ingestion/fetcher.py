"""Single-page HTTP fetching with fixed-delay retries."""

from __future__ import annotations

import asyncio
import logging

import requests

from context_rag.config import settings
from context_rag.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": "context-rag/0.1"}


class WebFetcher:
    """Download the body of one page, retrying transient failures.

    Parameters
    ----------
    max_retries:
        Total number of attempts, not additional retries.
    retry_delay:
        Fixed pause in seconds between attempts.
    timeout:
        Per-request timeout in seconds.
    headers:
        Extra request headers merged over :data:`DEFAULT_HEADERS`.
    """

    def __init__(
        self,
        *,
        max_retries: int = settings.fetch_max_retries,
        retry_delay: float = settings.fetch_retry_delay,
        timeout: float = settings.fetch_timeout,
        headers: dict[str, str] | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}

    async def fetch(self, url: str) -> str:
        """Return the response body of *url*.

        Raises
        ------
        TransportError
            When every attempt failed; chained to the last underlying error.
        """
        last_exc: requests.RequestException | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await asyncio.to_thread(self._get, url)
                break
            except requests.RequestException as exc:
                last_exc = exc
                logger.warning("Error fetching %s (attempt %d/%d): %s", url, attempt, self.max_retries, exc)
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay)
        else:
            raise TransportError(
                f"Failed to fetch {url} after {self.max_retries} attempts: {last_exc}"
            ) from last_exc

        logger.info("Fetched %s (%d chars)", url, len(resp.text))
        return resp.text

    def _get(self, url: str) -> requests.Response:
        resp = requests.get(url, headers=self.headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp
