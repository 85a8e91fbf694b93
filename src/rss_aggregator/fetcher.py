"""HTTP transport for raw feed documents."""

import asyncio
import logging
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a feed document could not be retrieved."""


class FetchAbortedError(FetchError):
    """Raised when a fetch is cancelled through its abort signal."""


class FeedFetcher:
    """Fetches feed documents over a shared aiohttp session."""

    def __init__(self, request_timeout: int = 30, user_agent: str = "RSS-Aggregator/1.0"):
        """Initialize the fetcher.

        Args:
            request_timeout: HTTP request timeout in seconds
            user_agent: User agent string for requests
        """
        self.request_timeout = request_timeout
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout)
            headers = {"User-Agent": self.user_agent}
            self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _fetch(self, url: str) -> str:
        session = await self._get_session()
        try:
            async with session.get(url, headers={"Accept": "application/xml"}) as response:
                if response.status >= 400:
                    raise FetchError(f"HTTP {response.status}: {response.reason}")
                return await response.text()
        except asyncio.TimeoutError as e:
            raise FetchError(f"Request timeout for {url}") from e
        except aiohttp.ClientError as e:
            raise FetchError(f"Client error: {str(e)}") from e

    async def fetch_document(self, url: str, abort_signal: Optional[asyncio.Event] = None) -> str:
        """Fetch the raw text of the document at ``url``.

        Args:
            url: Feed URL to fetch
            abort_signal: Event that cancels the request when set

        Returns:
            Response body text

        Raises:
            FetchError: On network failure, timeout, or an HTTP error status
            FetchAbortedError: When ``abort_signal`` is set before the response arrives
        """
        if abort_signal is None:
            return await self._fetch(url)
        if abort_signal.is_set():
            raise FetchAbortedError(f"Request for {url} aborted")

        fetch_task = asyncio.ensure_future(self._fetch(url))
        abort_task = asyncio.ensure_future(abort_signal.wait())
        try:
            done, _ = await asyncio.wait(
                {fetch_task, abort_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if fetch_task in done:
                return fetch_task.result()
            logger.info(f"Request for {url} aborted")
            raise FetchAbortedError(f"Request for {url} aborted")
        finally:
            for task in (fetch_task, abort_task):
                if not task.done():
                    task.cancel()
