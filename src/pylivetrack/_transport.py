"""HTTP transport for the live vehicle feed."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from pylivetrack._constants import NO_CACHE_HEADERS, USER_AGENT
from pylivetrack.config import TrackerConfig
from pylivetrack.exceptions import FeedTransportError
from pylivetrack.ingestion.feed import decode_feed_body

_logger = logging.getLogger(__name__)


class FeedTransport(Protocol):
    """Structural transport interface used by the poller.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpFeedTransport`) concrete.
    """

    async def fetch(self) -> Any:
        """Return the decoded JSON body of one feed request."""
        ...


class HttpFeedTransport:
    """GETs the feed URL, bypassing caches, and decodes the JSON body."""

    def __init__(self, config: TrackerConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = (
            aiohttp.ClientTimeout(total=config.request_timeout) if config.request_timeout is not None else None
        )

    async def fetch(self) -> Any:
        url = self._config.feed_url
        headers = {**NO_CACHE_HEADERS, "user-agent": USER_AGENT}

        _logger.debug("GET %s", url)

        kwargs: dict[str, Any] = {"headers": headers}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        try:
            async with self._http.get(url, **kwargs) as resp:
                body = await resp.read()
                if not 200 <= resp.status < 300:
                    raise FeedTransportError(
                        f"HTTP {resp.status} from {url}: {body[:200].decode('utf-8', 'replace')}",
                        status_code=resp.status,
                        url=url,
                    )
        except FeedTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FeedTransportError(f"Request to {url} failed: {exc!r}", url=url) from exc

        return decode_feed_body(body, url=url)
