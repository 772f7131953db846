"""
Provider client — fetches raw data from catalog sources over HTTP.

Handles credential checks, retries with exponential backoff, and walking a
source's fallback chain when it keeps failing.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from mlb_edge.config import Settings, settings
from mlb_edge.errors import ConfigurationError, FetchError, SourceExhaustedError
from mlb_edge.models import DataSource, RawResponse
from mlb_edge.planner import CollectionPlanner, RetryPolicy

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ProviderClient:
    """HTTP client for catalog data sources."""

    def __init__(
        self,
        config: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config or settings
        self._sleep = sleep
        self._client = httpx.AsyncClient(timeout=self.config.REQUEST_TIMEOUT)

    async def close(self):
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    def check_credentials(self, source: DataSource) -> str | None:
        """
        Return the API key for a source, or None if it needs none.

        Raises ConfigurationError when the source requires a key that
        is not configured.
        """
        if not source.api_key_required:
            return None
        api_key = self.config.api_key_for(source.name)
        if not api_key:
            raise ConfigurationError(f"Missing API key for {source.name}")
        return api_key

    async def fetch(
        self,
        source: DataSource,
        endpoint: str = "",
        params: dict[str, str] | None = None,
    ) -> RawResponse:
        """Fetch one endpoint from a source."""
        api_key = self.check_credentials(source)
        query = dict(params or {})
        if api_key:
            query["apiKey"] = api_key

        logger.debug("Fetching from %s: %s", source.name, endpoint)
        try:
            data = await self._request("GET", self._url(source, endpoint), params=query)
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(source.name, str(e) or type(e).__name__) from e

        return RawResponse(source=source.name, endpoint=endpoint, data=data)

    async def fetch_with_retry(
        self,
        source: DataSource,
        endpoint: str = "",
        params: dict[str, str] | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> RawResponse:
        """Fetch with up to ``max_retries`` attempts and exponential backoff."""
        policy = retry_policy or RetryPolicy(
            max_retries=self.config.MAX_RETRIES,
            base_delay=self.config.RETRY_BASE_DELAY,
        )
        attempts = max(policy.max_retries, 1)
        last_error: FetchError | None = None

        for attempt in range(attempts):
            try:
                return await self.fetch(source, endpoint, params)
            except FetchError as e:
                last_error = e
                if attempt + 1 < attempts:
                    delay = policy.delay_for(attempt)
                    logger.warning(
                        "Fetch from %s failed (attempt %d/%d), retrying in %.0fs: %s",
                        source.name, attempt + 1, attempts, delay, e,
                    )
                    await self._sleep(delay)

        raise last_error

    async def fetch_with_fallback(
        self,
        planner: CollectionPlanner,
        source: DataSource,
        endpoint: str = "",
        params: dict[str, str] | None = None,
    ) -> RawResponse:
        """
        Fetch from ``source``; when it is exhausted, walk its fallback chain.

        A source with a missing credential counts as exhausted immediately.
        Raises SourceExhaustedError once every candidate has failed.
        """
        tried: list[str] = []
        current: DataSource | None = source

        while current is not None:
            tried.append(current.name)
            try:
                return await self.fetch_with_retry(
                    current, endpoint, params, retry_policy=planner.retry_policy
                )
            except ConfigurationError as e:
                logger.warning("Skipping %s: %s", current.name, e)
            except FetchError as e:
                logger.error("Source %s exhausted: %s", current.name, e)

            current = planner.next_source(source.name, exhausted=tried)
            if current is not None:
                logger.info("Trying fallback source: %s", current.name)

        raise SourceExhaustedError(source.name, tried)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _url(source: DataSource, endpoint: str) -> str:
        base = source.url.rstrip("/")
        if endpoint and not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return f"{base}{endpoint}"

    async def _request(self, method: str, url: str, params: dict | None = None):
        resp = await self._client.request(method, url, params=params)
        resp.raise_for_status()
        return resp.json()
