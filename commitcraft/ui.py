"""Terminal styling helpers."""

from __future__ import annotations

import asyncio
import itertools
import os
from typing import Awaitable, TextIO, TypeVar

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
CYAN = "\033[96m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"

RULE = "─" * 50
CLEAR_LINE = "\r\033[K"
SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

T = TypeVar("T")


def is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def supports_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return is_terminal(stream)


def paint(text: str, *codes: str, stream: TextIO) -> str:
    """Wrap ``text`` in ANSI ``codes`` when ``stream`` is a colour TTY."""
    if not codes or not supports_color(stream):
        return text
    return "".join(codes) + text + RESET


class Spinner:
    """Status line rewritten in place with ``\\r`` while an awaitable runs.

    Off a terminal the message is printed once and nothing animates.
    """

    def __init__(self, message: str, stream: TextIO, interval: float = 0.08) -> None:
        self.message = message
        self.stream = stream
        self.interval = interval

    async def _spin(self) -> None:
        for frame in itertools.cycle(SPINNER_FRAMES):
            glyph = paint(frame, CYAN, stream=self.stream)
            print(f"\r{glyph} {self.message}", end="", file=self.stream, flush=True)
            await asyncio.sleep(self.interval)

    async def run(self, awaitable: Awaitable[T]) -> T:
        if not is_terminal(self.stream):
            print(self.message, file=self.stream)
            return await awaitable
        task = asyncio.create_task(self._spin())
        try:
            return await awaitable
        finally:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            print(CLEAR_LINE, end="", file=self.stream, flush=True)
