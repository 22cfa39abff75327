"""
Statuspage Bot — the core loop.

Every ``interval`` seconds the bot fetches the feed (conditionally, with
the ETag of the previous response), folds it into the IncidentTracker
and writes whatever changed to all channels it is on. Between ticks it
answers commands addressed to it:

  - "status?"  the open incidents, or "All systems are operational."
  - "bye"      leave the channel
  - "help"     what the bot is and how to use it

Fetches, announcements and commands all run on one asyncio event loop.
A reconcile has no await points, so a status question always sees the
state before or after a cycle, never halfway.
"""

from __future__ import annotations

import asyncio
import re
from typing import Optional

from statuspagebot import __version__, notifier
from statuspagebot.fetcher import FeedFetcher, TransientFetchError
from statuspagebot.irc import IrcClient, IrcMessage
from statuspagebot.models import BotConfig
from statuspagebot.responder import StatusResponder
from statuspagebot.tracker import IncidentTracker

_STATUS_RE = re.compile(r"^status *\??$", re.IGNORECASE)
_BYE_RE = re.compile(r"^bye *\.?$", re.IGNORECASE)
_HELP_RE = re.compile(r"^help *\??$", re.IGNORECASE)


class StatuspageBot:
    """
    Relays a status page feed to IRC.

    Attributes:
        config: Startup configuration.
        tracker: What the bot knows about the feed's entries.
        etag: ETag of the last full fetch, None until the first one.
    """

    def __init__(self, config: BotConfig, fetcher: FeedFetcher, irc: IrcClient) -> None:
        self.config = config
        self.fetcher = fetcher
        self.irc = irc
        self.tracker = IncidentTracker()
        self.responder = StatusResponder(self.tracker)

        # Conditional HTTP state
        self.etag: Optional[str] = None

        irc.on_message = self.said
        irc.on_invite = self.invited

    async def tick(self) -> int:
        """
        Execute a single poll cycle:
        1. Fetch feed with If-None-Match
        2. Skip if 304 Not Modified or the fetch failed
        3. Reconcile the entries with the tracker
        4. Announce the new messages

        Returns:
            Seconds until the next tick.
        """
        notifier.print_fetching(self.fetcher.feed_url)
        try:
            result = await self.fetcher.fetch(self.etag)
        except TransientFetchError as exc:
            notifier.print_fetch_error(str(exc))
            return self.config.interval

        if not result.changed:
            notifier.print_no_changes()
            return self.config.interval

        announcements = self.tracker.reconcile(result.entries)
        self.etag = result.token

        for announcement in announcements:
            await self.irc.announce(announcement.text)

        return self.config.interval

    async def run_forever(self) -> None:
        """Tick until cancelled."""
        while True:
            delay = await self.tick()
            await asyncio.sleep(delay)

    async def said(self, message: IrcMessage) -> None:
        """Handle a message; only those addressed to the bot are commands."""
        if not message.addressed:
            return
        text = message.body
        if _BYE_RE.match(text):
            if message.channel != "msg":
                await self.irc.part(message.channel)
        elif _STATUS_RE.match(text):
            await self.print_status(message.channel, message.who)
        elif _HELP_RE.match(text):
            await self.irc.say(message.channel, self.help_text(), who=message.who)

    async def print_status(self, channel: str, who: str) -> None:
        """Say the last message of every ongoing incident."""
        for line in self.responder.render_status():
            await self.irc.say(channel, line, who=who)

    async def invited(self, who: str, raw_nick: str, channel: str) -> None:
        notifier.print_invited(who, raw_nick, channel)
        await self.irc.join(channel)

    def help_text(self) -> str:
        me = self.irc.nick
        return (
            f"I am an instance of StatuspageBot {__version__}.\n"
            f"I write to IRC when the status of services on {self.config.statuspage} changes.\n"
            f'Invite me with "/invite {me}", dismiss me with "{me}, bye".\n'
            f'Ask for the current status with "{me}, status?".'
        )
