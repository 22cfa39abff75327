"""
Feed Fetcher — conditional HTTP retrieval of the status feed.

The caller keeps the ETag of the last full response and passes it back
on the next fetch. The server then answers 304 Not Modified when the
feed has not changed, and there is nothing to parse or reconcile.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional
from xml.etree import ElementTree as ET

import aiohttp

from statuspagebot import __version__
from statuspagebot.feed_parser import parse_feed
from statuspagebot.models import FetchResult

_XML_TYPES = ("application/atom+xml", "application/rss+xml", "application/xml", "text/xml")


class TransientFetchError(Exception):
    """The feed could not be retrieved or parsed this time; try again later."""


def _is_xml(content_type: str) -> bool:
    return content_type in _XML_TYPES or content_type.endswith("+xml")


class FeedFetcher:
    """
    Fetches one feed with If-None-Match support.

    Attributes:
        feed_url: The Atom (or RSS) feed to request.
        feed_type: "atom" or "rss".
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        feed_url: str,
        feed_type: str = "atom",
        timeout: float = 30,
    ) -> None:
        self._session = session
        self.feed_url = feed_url
        self.feed_type = feed_type
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(self, token: Optional[str] = None) -> FetchResult:
        """
        Get the feed, conditionally on ``token`` if there is one.

        Returns:
            FetchResult(changed=False) on 304, otherwise the parsed
            entries and the new ETag (None if the server sent none).

        Raises:
            TransientFetchError: on network errors, timeouts, any other
                status, a non-XML response or unparseable XML.
        """
        headers: Dict[str, str] = {
            "Accept": "application/atom+xml, application/rss+xml, application/xml",
            "User-Agent": f"StatuspageBot/{__version__}",
        }
        if token is not None:
            headers["If-None-Match"] = token

        try:
            async with self._session.get(
                self.feed_url,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status == 304:
                    return FetchResult(changed=False)
                if resp.status != 200:
                    raise TransientFetchError(f"{resp.status} {resp.reason}")
                if not _is_xml(resp.content_type):
                    raise TransientFetchError(f"unexpected content type {resp.content_type}")
                body = await resp.read()
                etag = resp.headers.get("ETag")
        except aiohttp.ClientError as exc:
            raise TransientFetchError(str(exc) or type(exc).__name__) from exc
        except asyncio.TimeoutError as exc:
            raise TransientFetchError(f"timeout fetching {self.feed_url}") from exc

        try:
            entries = parse_feed(body, feed_type=self.feed_type)
        except ET.ParseError as exc:
            raise TransientFetchError(f"unparseable feed: {exc}") from exc

        return FetchResult(changed=True, entries=entries, token=etag)
