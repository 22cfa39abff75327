"""
Configuration loader.

Builds the BotConfig from three sources, read once at startup:
  - an optional YAML file (config.yaml, or the file given with -c)
  - the command line options, which override the file
  - the IRC URL, with credentials completed from ~/.netrc or a prompt
"""

from __future__ import annotations

import argparse
import getpass
import re
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import unquote

import yaml

from statuspagebot import __version__
from statuspagebot.models import DEFAULT_INTERVAL, DEFAULT_STATUSPAGE, BotConfig, IrcServer

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

_IRC_URL_RE = re.compile(
    r"^(ircs?)://"
    r"(?:([^:@/?#]+)(?::([^@/?#]*))?@)?"  # user, password
    r"([^:/#?]+)"  # host
    r"(?::([^/]*))?"  # port
    r"(?:/(.+)?)?$",  # channel
    re.IGNORECASE,
)


class ConfigError(Exception):
    """The configuration or the command line is not usable."""


def parse_irc_url(url: str) -> IrcServer:
    """
    Parse irc[s]://[user[:password]@]host[:port][/channel].

    User, password and channel are percent-decoded. The port defaults to
    6667, or 6697 for ircs. A channel without a leading # or & gets a #.

    Raises:
        ConfigError: If the URL does not have that form.
    """
    match = _IRC_URL_RE.match(url)
    if not match:
        raise ConfigError("Argument must be a URI starting with `irc:' or `ircs:'")

    proto, user, password, host, port, channel = match.groups()
    ssl = proto.lower() == "ircs"

    if port:
        try:
            port_number = int(port)
        except ValueError:
            raise ConfigError(f"Invalid port: {port!r}") from None
    else:
        port_number = 6697 if ssl else 6667

    if channel is not None:
        channel = unquote(channel)
        if not channel.startswith(("#", "&")):
            channel = "#" + channel

    return IrcServer(
        host=host,
        port=port_number,
        ssl=ssl,
        username=unquote(user) if user is not None else None,
        password=unquote(password) if password is not None else None,
        channel=channel,
    )


def read_netrc(host: str, login: Optional[str] = None, path: Optional[str] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    Find a login and password for ``host`` in ~/.netrc.

    With ``login``, only a matching entry counts. Returns (None, None)
    if there is no file or no matching entry.
    """
    try:
        entries = _netrc_entries(path)
    except (OSError, ValueError):
        return None, None

    # First matching machine entry wins; "default" only if none matches
    for machine in (host, None):
        for entry_host, user, password in entries:
            if entry_host == machine and (login is None or user == login):
                return user, password
    return None, None


def _netrc_entries(path: Optional[str] = None) -> List[Tuple[Optional[str], Optional[str], Optional[str]]]:
    """
    All (machine, login, password) entries of a .netrc file, in file order.

    Unlike netrc.netrc, which keeps one entry per machine, several logins
    for the same machine are all kept. The machine is None for "default".
    """
    netrc_path = Path(path) if path else Path.home() / ".netrc"
    lexer = shlex.shlex(netrc_path.read_text(), posix=True)
    lexer.wordchars += r"!$%&()*+,-./:;<=>?@[\]^_`{|}~"
    lexer.commenters = "#"

    entries: List[List[Optional[str]]] = []
    tokens = iter(lexer)
    for token in tokens:
        if token == "machine":
            entries.append([next(tokens, None), None, None])
        elif token == "default":
            entries.append([None, None, None])
        elif token == "macdef":
            # Macro definitions run to the end of what we care about
            break
        elif token == "login" and entries:
            entries[-1][1] = next(tokens, None)
        elif token == "password" and entries:
            entries[-1][2] = next(tokens, None)
        elif token == "account":
            next(tokens, None)
    return [(machine, user, password) for machine, user, password in entries]


def complete_credentials(server: IrcServer, netrc_path: Optional[str] = None, prompt=getpass.getpass) -> IrcServer:
    """
    Fill in a missing username and/or password.

    No user: take user and password from ~/.netrc. User but no password:
    take the password from ~/.netrc, or ask for it.
    """
    user, password = server.username, server.password

    if user is None:
        found_user, found_password = read_netrc(server.host, path=netrc_path)
        if found_user is not None:
            user, password = found_user, found_password

    if user is not None and password is None:
        _, found_password = read_netrc(server.host, user, path=netrc_path)
        password = found_password

    if user is not None and password is None:
        password = prompt(f'IRC password for user "{user}": ')

    return IrcServer(
        host=server.host,
        port=server.port,
        ssl=server.ssl,
        username=user,
        password=password,
        channel=server.channel,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statuspagebot",
        description="IRC bot that displays updates from a statuspage.",
    )
    parser.add_argument("-n", dest="nick", help='nick of the bot (default "statuspagebot")')
    parser.add_argument("-N", dest="name", help="real name of the bot")
    parser.add_argument("-s", dest="statuspage", help=f"URL of the statuspage (default {DEFAULT_STATUSPAGE})")
    parser.add_argument("-f", dest="atomfeed", help="URL of the Atom feed (default <statuspage>/history.atom)")
    parser.add_argument("-i", dest="interval", type=int, help=f"seconds between fetches (default {DEFAULT_INTERVAL})")
    parser.add_argument("-k", dest="insecure", action="store_true", help="don't verify the IRC server's TLS hostname")
    parser.add_argument("-v", dest="verbose", action="store_true", help="log to stderr")
    parser.add_argument("-c", dest="config", help="YAML configuration file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("url", metavar="IRC-URL", help="irc[s]://[user[:password]@]server[:port][/channel]")
    return parser


def load_file_settings(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Read the ``bot`` section of the YAML configuration file.

    Returns an empty dict if the default file does not exist. An
    explicitly named file must exist.
    """
    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    if not config_path.exists():
        if path:
            raise ConfigError(f"Config file not found: {config_path}")
        return {}

    with open(config_path, "r") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid config file {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid config file {config_path}: expected a mapping")
    settings = raw.get("bot", {}) or {}
    if not isinstance(settings, dict):
        raise ConfigError(f"Invalid config file {config_path}: 'bot' must be a mapping")
    return settings


def load_config(argv: Optional[Sequence[str]] = None, prompt=getpass.getpass) -> BotConfig:
    """
    Parse the command line (and config file) into a BotConfig.

    Raises:
        ConfigError: On a bad IRC URL, config file or interval.
    """
    args = build_arg_parser().parse_args(argv)
    settings = load_file_settings(args.config)

    def pick(option: str, default: Any) -> Any:
        value = getattr(args, option, None)
        if value is not None:
            return value
        return settings.get(option, default)

    interval = pick("interval", DEFAULT_INTERVAL)
    if not isinstance(interval, int) or interval <= 0:
        raise ConfigError(f"Interval must be a positive number of seconds, not {interval!r}")

    feed_type = str(settings.get("feed_type", "atom")).lower()
    if feed_type not in ("atom", "rss"):
        raise ConfigError(f"Unknown feed_type {feed_type!r}")

    server = complete_credentials(parse_irc_url(args.url), prompt=prompt)

    return BotConfig(
        server=server,
        nick=pick("nick", "statuspagebot"),
        name=pick("name", f"StatuspageBot/{__version__}"),
        statuspage=pick("statuspage", DEFAULT_STATUSPAGE),
        atomfeed=pick("atomfeed", ""),
        feed_type=feed_type,
        interval=interval,
        verbose=args.verbose or bool(settings.get("verbose", False)),
        ssl_verify_hostname=not (args.insecure or bool(settings.get("insecure", False))),
    )
