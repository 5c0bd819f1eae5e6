"""
HTTP Fetch Service

Single-shot GETs for detail pages and posters, and a retrying GET for feed
pages. Every failure surfaces as FetchError.
"""

from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..config import Settings, get_settings
from ..core.exceptions import FetchError
from ..core.logging import get_logger

logger = get_logger(__name__)


def _log_failed_attempt(retry_state: RetryCallState):
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "fetch_attempt_failed",
        url=retry_state.args[0] if retry_state.args else None,
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class HttpFetcher:
    """
    Thin wrapper over a shared httpx.AsyncClient.

    The client is created lazily from settings unless one is injected
    (tests pass a client built on httpx.MockTransport).
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": self.settings.user_agent},
            )
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise FetchError(
                url,
                f"status code {response.status_code}",
                upstream_status=response.status_code,
            )
        return response

    async def fetch_text(self, url: str) -> str:
        """GET a page and return its decoded body."""
        response = await self._get(url)
        return response.text

    async def fetch_bytes(self, url: str) -> bytes:
        """GET a resource and return its raw body."""
        response = await self._get(url)
        return response.content

    async def fetch_with_retry(
        self,
        url: str,
        attempts: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> str:
        """
        GET a page, retrying a fixed number of times with a fixed delay.

        Args:
            url: Page to fetch
            attempts: Total attempts (defaults to FEED_FETCH_RETRIES)
            delay: Seconds between attempts (defaults to FEED_FETCH_RETRY_DELAY_SECONDS)

        Raises:
            FetchError: Every attempt failed
        """
        attempts = attempts or self.settings.feed_fetch_retries
        if delay is None:
            delay = self.settings.feed_fetch_retry_delay_seconds

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=wait_fixed(delay),
            retry=retry_if_exception_type(FetchError),
            after=_log_failed_attempt,
            reraise=False,
        )
        try:
            body = await retrying(self.fetch_text, url)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error("fetch_gave_up", url=url, attempts=attempts, error=str(last))
            raise FetchError(url, f"failed after {attempts} attempts: {last}") from last

        logger.debug("fetch_succeeded", url=url)
        return body
