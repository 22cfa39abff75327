"""
A small asyncio IRC client.

Just enough of the protocol for the bot: register, answer PINGs, join
and part channels, follow invitations, and exchange PRIVMSGs. Messages
are handed to the bot through two callbacks, one for PRIVMSG and one
for INVITE.
"""

from __future__ import annotations

import asyncio
import re
import ssl as ssl_module
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Set, Tuple

from statuspagebot import notifier
from statuspagebot.models import IrcServer

# "nick: text" or "nick, text"
_ADDRESS_RE = re.compile(r"^\s*([^\s:,]+)\s*[:,]\s*(.*)$", re.DOTALL)

# A line is at most 512 bytes with CRLF; the server also prepends our
# ":nick!user@host " when relaying, so keep the command well below that
_MAX_LINE_BYTES = 510
_RELAY_PREFIX_BYTES = 100


class IrcConnectionError(Exception):
    """The connection to the IRC server failed or was closed."""


@dataclass(frozen=True)
class IrcMessage:
    """
    A PRIVMSG received by the bot.

    Attributes:
        who: Nick of the sender.
        raw_nick: Full prefix of the sender (nick!user@host).
        channel: The channel, or "msg" for a private message.
        body: The text, without the "nick:" address if there was one.
        addressed: True if the text was addressed to the bot.
    """

    who: str
    raw_nick: str
    channel: str
    body: str
    addressed: bool


MessageHandler = Callable[[IrcMessage], Awaitable[None]]
InviteHandler = Callable[[str, str, str], Awaitable[None]]


def parse_line(line: str) -> Tuple[str, str, List[str]]:
    """
    Split a raw IRC line into (prefix, command, params).

    The trailing parameter (after " :") is kept as one param.
    """
    prefix = ""
    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")
    if " :" in line:
        line, _, trailing = line.partition(" :")
        params = line.split()
        params.append(trailing)
    else:
        params = line.split()
    command = params.pop(0).upper() if params else ""
    return prefix, command, params


def split_text(text: str, limit: int) -> List[str]:
    """
    Cut text into pieces of at most ``limit`` UTF-8 bytes.

    Cuts fall on spaces where possible; a word longer than the limit is
    cut between characters.
    """
    parts: List[str] = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if len(candidate.encode("utf-8")) <= limit:
            current = candidate
            continue
        if current:
            parts.append(current)
        current = ""
        for char in word:
            if len((current + char).encode("utf-8")) > limit:
                parts.append(current)
                current = ""
            current += char
    if current:
        parts.append(current)
    return parts


class IrcClient:
    """
    One connection to an IRC server.

    Attributes:
        server: Where to connect and with which credentials.
        nick: The nick currently in use.
        channels: The channels the bot is on.
    """

    def __init__(
        self,
        server: IrcServer,
        nick: str,
        name: str,
        ssl_verify_hostname: bool = True,
        on_message: Optional[MessageHandler] = None,
        on_invite: Optional[InviteHandler] = None,
    ) -> None:
        self.server = server
        self.nick = nick
        self.name = name
        self.ssl_verify_hostname = ssl_verify_hostname
        self.on_message = on_message
        self.on_invite = on_invite
        self.channels: Set[str] = set()
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer = None

    def _ssl_context(self) -> Optional[ssl_module.SSLContext]:
        if not self.server.ssl:
            return None
        context = ssl_module.create_default_context()
        if not self.ssl_verify_hostname:
            context.check_hostname = False
            context.verify_mode = ssl_module.CERT_NONE
        return context

    async def connect(self) -> None:
        """Open the connection and register with the server."""
        notifier.print_connecting(self.server.host, self.server.port)
        try:
            reader, writer = await asyncio.open_connection(
                self.server.host,
                self.server.port,
                ssl=self._ssl_context(),
            )
        except OSError as exc:
            raise IrcConnectionError(f"cannot connect to {self.server.host}: {exc}") from exc
        await self.attach(reader, writer)

    async def attach(self, reader: asyncio.StreamReader, writer) -> None:
        """Register over an already open stream pair."""
        self._reader, self._writer = reader, writer
        if self.server.password:
            await self.send(f"PASS {self.server.password}")
        await self.send(f"NICK {self.nick}")
        await self.send(f"USER {self.server.username or self.nick} 0 * :{self.name}")

    async def send(self, line: str) -> None:
        if self._writer is None:
            raise IrcConnectionError("not connected")
        self._writer.write((line + "\r\n").encode("utf-8"))
        await self._writer.drain()

    async def run(self) -> None:
        """
        Read and dispatch server lines until the connection closes.

        Raises:
            IrcConnectionError: when the server closes the connection.
        """
        if self._reader is None:
            raise IrcConnectionError("not connected")
        while True:
            raw = await self._reader.readline()
            if not raw:
                raise IrcConnectionError("connection closed by server")
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if line:
                await self.handle_line(line)

    async def handle_line(self, line: str) -> None:
        prefix, command, params = parse_line(line)
        sender = prefix.split("!", 1)[0]

        if command == "PING":
            await self.send("PONG :" + (params[0] if params else ""))
        elif command == "001":
            if self.server.channel:
                await self.join(self.server.channel)
        elif command == "433":
            # Nick in use
            self.nick += "_"
            await self.send(f"NICK {self.nick}")
        elif command == "JOIN" and sender == self.nick and params:
            self.channels.add(params[0])
        elif command == "PART" and sender == self.nick and params:
            self.channels.discard(params[0])
        elif command == "KICK" and len(params) >= 2 and params[1] == self.nick:
            self.channels.discard(params[0])
        elif command == "NICK" and sender == self.nick and params:
            self.nick = params[0]
        elif command == "INVITE" and len(params) >= 2:
            if self.on_invite is not None:
                await self.on_invite(sender, prefix, params[1])
        elif command == "PRIVMSG" and len(params) >= 2:
            if self.on_message is not None:
                await self.on_message(self._to_message(sender, prefix, params[0], params[1]))

    def _to_message(self, who: str, raw_nick: str, target: str, text: str) -> IrcMessage:
        if target.lower() == self.nick.lower():
            return IrcMessage(who, raw_nick, "msg", text.strip(), True)
        match = _ADDRESS_RE.match(text)
        if match and match.group(1).lower() == self.nick.lower():
            return IrcMessage(who, raw_nick, target, match.group(2).strip(), True)
        return IrcMessage(who, raw_nick, target, text.strip(), False)

    async def say(self, channel: str, text: str, who: Optional[str] = None) -> None:
        """Send text to a channel (or to ``who`` privately if channel is "msg")."""
        target = who if channel == "msg" else channel
        if target is None:
            return
        command = f"PRIVMSG {target} :"
        limit = _MAX_LINE_BYTES - _RELAY_PREFIX_BYTES - len(command.encode("utf-8"))
        for line in text.splitlines():
            if not line.strip():
                continue
            for part in split_text(line, limit):
                await self.send(command + part)

    async def announce(self, text: str) -> None:
        """Say ``text`` in every channel the bot is on."""
        for channel in sorted(self.channels):
            await self.say(channel, text)

    async def join(self, channel: str) -> None:
        await self.send(f"JOIN {channel}")

    async def part(self, channel: str) -> None:
        await self.send(f"PART {channel}")

    async def quit(self, message: str = "") -> None:
        if self._writer is None:
            return
        try:
            await self.send(f"QUIT :{message}")
        except (ConnectionError, IrcConnectionError):
            pass
        self._writer.close()
        self._writer = None
