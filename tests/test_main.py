"""Tests for the command line entry point."""

import pytest

from statuspagebot import main as main_module
from statuspagebot import notifier
from statuspagebot.irc import IrcConnectionError


@pytest.fixture(autouse=True)
def quiet_afterwards():
    yield
    notifier.configure(False)


async def _refuse(config):
    raise IrcConnectionError("cannot connect to irc.example.org")


class TestMain:
    def test_bad_url_exits_with_2(self, capsys):
        assert main_module.main(["http://example.org/"]) == 2
        assert "irc:" in capsys.readouterr().err

    def test_connection_failure_exits_with_1(self, monkeypatch, capsys):
        monkeypatch.setattr(main_module, "async_main", _refuse)
        assert main_module.main(["irc://u:p@irc.example.org/w3c"]) == 1
        assert capsys.readouterr().err == ""

    def test_connection_failure_logged_when_verbose(self, monkeypatch, capsys):
        monkeypatch.setattr(main_module, "async_main", _refuse)
        assert main_module.main(["-v", "irc://u:p@irc.example.org/w3c"]) == 1
        assert "IRC connection lost: cannot connect to irc.example.org" in capsys.readouterr().err

    def test_clean_exit(self, monkeypatch):
        seen = []

        async def run(config):
            seen.append(config.server.channel)

        monkeypatch.setattr(main_module, "async_main", run)
        assert main_module.main(["irc://u:p@irc.example.org/w3c"]) == 0
        assert seen == ["#w3c"]
