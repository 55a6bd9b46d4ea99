"""Terminal output helpers shared by the CLI and the dev panel."""

import os
import sys
from enum import Enum
from typing import (
    Any,
    TextIO,
)

RESET = "\033[0m"


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def supports_color(stream: TextIO) -> bool:
    """True when *stream* is an interactive terminal and ``NO_COLOR`` is unset."""
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color.

    Output redirected to a file or pipe is printed without escape codes.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print (``file`` defaults to stdout)
    """
    stream = kwargs.get("file") or sys.stdout
    if supports_color(stream):
        text = f"{color.value}{text}{RESET}"
    print(text, *args, **kwargs)
