"""
Data models for the status bot.

Defines structured representations for feed entries, fetch results,
announcements and the bot's configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional

DEFAULT_STATUSPAGE = "https://status.w3.org/"
DEFAULT_INTERVAL = 120


@dataclass(frozen=True)
class FeedEntry:
    """
    A single entry of the status feed, as seen in one fetch.

    Attributes:
        id: Stable identifier of the entry (Atom id / RSS guid).
        title: Human-readable incident title.
        updated: When the entry was last modified.
        body: The entry content, decoded to HTML.
    """

    id: str
    title: str
    updated: datetime
    body: str

    @property
    def updated_label(self) -> str:
        """The modification time as an ISO-8601 UTC string."""
        return format_timestamp(self.updated)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one conditional fetch of the feed."""

    changed: bool
    entries: List[FeedEntry] = field(default_factory=list)
    token: Optional[str] = None


class Announcement(NamedTuple):
    """A line to write on IRC for an entry that changed."""

    entry_id: str
    text: str


@dataclass(frozen=True)
class IrcServer:
    """Where and as whom to connect on IRC."""

    host: str
    port: int
    ssl: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    channel: Optional[str] = None


@dataclass(frozen=True)
class BotConfig:
    """Settings read once at startup."""

    server: IrcServer
    nick: str = "statuspagebot"
    name: str = ""
    statuspage: str = DEFAULT_STATUSPAGE
    atomfeed: str = ""
    feed_type: str = "atom"  # "atom" or "rss"
    interval: int = DEFAULT_INTERVAL  # seconds
    verbose: bool = False
    ssl_verify_hostname: bool = True

    @property
    def feed_url(self) -> str:
        """The feed to poll; defaults to the statuspage's history.atom."""
        return self.atomfeed or self.statuspage.rstrip("/") + "/history.atom"


def format_timestamp(value: datetime) -> str:
    """Render a datetime as YYYY-MM-DDTHH:MM:SSZ (naive values count as UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")
