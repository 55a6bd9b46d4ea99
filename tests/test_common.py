"""Tests for terminal output helpers."""

import io

from agentkit.common import (
    AnsiColors,
    colored_print,
    supports_color,
)


class FakeTerminal(io.StringIO):
    def isatty(self) -> bool:
        return True


def test_plain_output_when_redirected() -> None:
    stream = io.StringIO()
    colored_print("done", AnsiColors.GREEN, file=stream)
    assert stream.getvalue() == "done\n"


def test_colored_output_on_terminal(monkeypatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    stream = FakeTerminal()
    colored_print("done", AnsiColors.GREEN, file=stream)
    assert stream.getvalue() == "\033[92mdone\033[0m\n"


def test_no_color_env(monkeypatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    assert supports_color(FakeTerminal()) is False
