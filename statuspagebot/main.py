"""
Main entry point.

Reads the configuration, connects to IRC, and runs the IRC reader and
the feed poller side by side in one asyncio event loop until the
connection drops or the process is interrupted.

Usage:
    statuspagebot [-n nick] [-N name] [-i interval] [-k] [-s statuspage-url]
                  [-f feed-url] [-c config.yaml] [-v] irc[s]://server...
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import List, Optional, Sequence

import aiohttp

from statuspagebot import notifier
from statuspagebot.bot import StatuspageBot
from statuspagebot.config import ConfigError, load_config
from statuspagebot.fetcher import FeedFetcher
from statuspagebot.irc import IrcClient, IrcConnectionError
from statuspagebot.models import BotConfig


class BotRunner:
    """
    Manages the lifecycle of the bot's two tasks (IRC reader and poller)
    and the shared aiohttp session.
    """

    def __init__(self, config: BotConfig) -> None:
        self.config = config
        self._tasks: List[asyncio.Task] = []

    async def run(self) -> None:
        irc = IrcClient(
            self.config.server,
            nick=self.config.nick,
            name=self.config.name,
            ssl_verify_hostname=self.config.ssl_verify_hostname,
        )
        async with aiohttp.ClientSession() as session:
            fetcher = FeedFetcher(session, self.config.feed_url, self.config.feed_type)
            bot = StatuspageBot(self.config, fetcher, irc)

            await irc.connect()
            self._tasks = [
                asyncio.create_task(irc.run(), name="irc"),
                asyncio.create_task(bot.run_forever(), name="poller"),
            ]
            try:
                # Whichever task ends first (normally the IRC reader on
                # disconnect) ends the bot
                done, _ = await asyncio.wait(self._tasks, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if not task.cancelled():
                        task.result()
            finally:
                self.shutdown()
                await asyncio.gather(*self._tasks, return_exceptions=True)
                await irc.quit("Bye")

    def shutdown(self) -> None:
        """Cancel all running tasks."""
        for task in self._tasks:
            task.cancel()


def _handle_signals(runner: BotRunner, loop: asyncio.AbstractEventLoop) -> None:
    """Register signal handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runner.shutdown)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


async def async_main(config: BotConfig) -> None:
    """Async entry point."""
    runner = BotRunner(config)
    _handle_signals(runner, asyncio.get_running_loop())
    try:
        await runner.run()
    except asyncio.CancelledError:
        pass
    notifier.print_shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Sync entry point."""
    try:
        config = load_config(argv)
    except ConfigError as exc:
        print(f"statuspagebot: {exc}", file=sys.stderr)
        return 2

    notifier.configure(config.verbose)

    try:
        asyncio.run(async_main(config))
    except IrcConnectionError as exc:
        notifier.print_disconnected(str(exc))
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
