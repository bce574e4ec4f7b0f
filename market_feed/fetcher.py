import httpx
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import (
    FETCH_TIMEOUT,
    FETCH_MAX_RETRIES,
    FETCH_BACKOFF_FACTOR,
    USER_AGENT,
)
from .errors import TransientProviderError
from .logger import feed_logger

Sleeper = Callable[[float], Awaitable[Any]]


class JsonFetcher:
    """
    An async HTTP client for pulling JSON documents from public market-data APIs.
    Features:
    - Connection pooling via a shared httpx.AsyncClient instance.
    - A bounded timeout on every attempt.
    - Retry with exponential backoff for any failed attempt.
    - Rate-limit (429) handling that honours the server's Retry-After hint.

    The fetcher holds no per-call state, so one instance can serve many
    concurrent requests.
    """

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT,
        max_retries: int = FETCH_MAX_RETRIES,
        backoff_factor: float = FETCH_BACKOFF_FACTOR,
        headers: Optional[Dict[str, str]] = None,
        sleep: Optional[Sleeper] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            timeout: Default per-attempt timeout in seconds.
            max_retries: Total number of attempts before giving up.
            backoff_factor: Base delay in seconds (delay = backoff_factor * (2 ** attempt)).
            headers: Headers sent with every request; a User-Agent is always present.
            sleep: Coroutine used to wait between attempts. Defaults to asyncio.sleep.
            client: Pre-built httpx.AsyncClient, mostly for tests.
        """
        self._default_headers = {"User-Agent": USER_AGENT}
        if headers:
            self._default_headers.update(headers)
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor
        self._sleep = sleep or asyncio.sleep

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        return self._backoff_factor * (2 ** attempt)

    def _retry_after_delay(self, response: httpx.Response, attempt: int) -> float:
        retry_after = response.headers.get("retry-after")
        if retry_after is not None:
            try:
                return float(int(retry_after))
            except ValueError:
                feed_logger.warning(f"Ignoring unparseable Retry-After header {retry_after!r}.")
        return self._backoff_delay(attempt)

    async def fetch_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        params: Optional[Dict[str, Any]] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """
        GETs `url` and returns the decoded JSON body.
        `max_retries` overrides the instance default for this call only;
        pass 1 for sources that are only worth asking once.
        Raises:
            TransientProviderError: If every attempt failed. The last underlying
                error is chained as the cause.
        """
        request_headers = {**self._default_headers, **(headers or {})}
        request_timeout = timeout if timeout is not None else self._timeout
        attempts = max_retries if max_retries is not None else self._max_retries
        last_error: Optional[Exception] = None
        last_status: Optional[int] = None

        for attempt in range(attempts):
            delay = self._backoff_delay(attempt)
            try:
                feed_logger.info(f"Attempt {attempt + 1}/{attempts} to GET {url}")
                response = await self._client.get(
                    url, headers=request_headers, params=params, timeout=request_timeout
                )
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                feed_logger.warning(f"Request timed out for {url}: {e}")
                last_error, last_status = e, None

            except httpx.HTTPStatusError as e:
                last_error, last_status = e, e.response.status_code
                if last_status == 429:
                    delay = self._retry_after_delay(e.response, attempt)
                    feed_logger.warning(f"Rate limited by {url} (429).")
                else:
                    feed_logger.warning(f"HTTP Status Error for {url}: {e}")

            except httpx.RequestError as e:
                feed_logger.warning(f"Request Error for {url}: {e}")
                last_error, last_status = e, None

            except ValueError as e:
                # Body was not valid JSON
                feed_logger.warning(f"Invalid JSON from {url}: {e}")
                last_error, last_status = e, None

            if attempt < attempts - 1:
                feed_logger.info(f"Waiting {delay:.2f}s before retrying {url}...")
                await self._sleep(delay)

        feed_logger.error(f"Giving up on {url} after {attempts} attempts: {last_error}")
        raise TransientProviderError(
            f"Failed to fetch {url} after {attempts} attempts",
            source=url,
            status_code=last_status,
        ) from last_error
