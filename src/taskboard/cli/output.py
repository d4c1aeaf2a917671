"""Colored terminal output for the command line."""

import sys
from typing import TextIO

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"

CHECK = "✓"
BULLET = "•"
CROSS = "✗"


def _supports_color(stream: TextIO) -> bool:
    """Color only when writing to a terminal."""
    return hasattr(stream, "isatty") and stream.isatty()


def _colorize(text: str, color: str, stream: TextIO) -> str:
    if _supports_color(stream):
        return f"{color}{text}{RESET}"
    return text


def _emit(symbol: str, color: str, message: str, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    print(f"{_colorize(symbol, color, stream)} {message}", file=stream)


def success(message: str) -> None:
    """Print a success message with a green check mark."""
    _emit(CHECK, GREEN, message)


def info(message: str) -> None:
    """Print an informational message with a yellow bullet."""
    _emit(BULLET, YELLOW, message)


def error(message: str) -> None:
    """Print an error message with a red cross to stderr."""
    _emit(CROSS, RED, message, sys.stderr)


def header(message: str) -> None:
    """Print a header line in blue."""
    print(_colorize(message, BLUE, sys.stdout))


def detail(message: str) -> None:
    """Print a dimmed, indented line."""
    print(_colorize(f"    {message}", DIM, sys.stdout))
