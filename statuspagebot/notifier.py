"""
Console Notifier — the bot's log.

Writes timestamped lines to stderr, but only when the bot runs in
verbose mode (-v). Lines that already start with a timestamp are
written as they are.
"""

from __future__ import annotations

import re
import sys
from datetime import datetime, timezone
from typing import TextIO

_TIMESTAMP_RE = re.compile(r"^\d\d\d\d-\d\d-\d\dT\d\d:\d\d:\d\dZ")

_verbose = False


def configure(verbose: bool) -> None:
    """Turn the log on or off."""
    global _verbose
    _verbose = verbose


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def log(*messages: str, stream: TextIO | None = None) -> None:
    """Print each message on its own line, prefixed with the current time."""
    if not _verbose:
        return
    out = stream or sys.stderr
    now = _now()
    for message in messages:
        line = message if _TIMESTAMP_RE.match(message) else f"{now} {message}"
        print(line, file=out)
    out.flush()


def print_connecting(host: str, port: int) -> None:
    log(f"Connecting to {host}:{port}...")


def print_fetching(feed_url: str) -> None:
    log(f"Getting {feed_url} ...")


def print_no_changes() -> None:
    log("Status not modified")


def print_fetch_error(reason: str) -> None:
    log(f"Fetch failed: {reason}")


def print_incident_set(entry_id: str, summary: str) -> None:
    log(f"Set incident {entry_id} to: {summary}")


def print_incident_closed(entry_id: str) -> None:
    log(f"Close incident {entry_id}")


def print_entry_removed(entry_id: str) -> None:
    log(f"Removing incident {entry_id}")


def print_invited(who: str, raw_nick: str, channel: str) -> None:
    log(f"Invited by {who} ({raw_nick}) to {channel}")


def print_disconnected(reason: str) -> None:
    log(f"IRC connection lost: {reason}")


def print_shutdown() -> None:
    log("Bot stopped.")
