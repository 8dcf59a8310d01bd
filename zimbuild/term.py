"""Terminal text colouring."""

from __future__ import annotations

import os
import sys

from termcolor import colored


def _sprint(args: tuple[object, ...]) -> str:
    # Operands are separated by a space only when neither side is a string.
    pieces: list[str] = []
    previous: object = None
    for index, arg in enumerate(args):
        if index and not isinstance(arg, str) and not isinstance(previous, str):
            pieces.append(" ")
        pieces.append(str(arg))
        previous = arg
    return "".join(pieces)


def _use_color() -> bool:
    if "NO_COLOR" in os.environ:
        return False
    if "FORCE_COLOR" in os.environ:
        return True
    if os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _paint(color: str, args: tuple[object, ...]) -> str:
    text = _sprint(args)
    if not _use_color():
        return text
    return colored(text, color, force_color=True)


def bright(*args: object) -> str:
    """Highlight text in the terminal."""
    return _paint("white", args)


def cyan(*args: object) -> str:
    """Colour text cyan."""
    return _paint("cyan", args)


def green(*args: object) -> str:
    """Colour text green."""
    return _paint("green", args)


def red(*args: object) -> str:
    """Colour text red."""
    return _paint("red", args)


def yellow(*args: object) -> str:
    """Colour text yellow."""
    return _paint("yellow", args)