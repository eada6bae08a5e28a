#!/usr/bin/env python3
"""
Full screen drawing surface for the clocks
Owns the terminal while the display runs: alternate screen, hidden cursor
and (optionally) cbreak input so a single key press can be noticed.
Everything it changes is put back exactly once when the surface is closed.
"""

import logging
import os
import select
import sys
import termios
import tty
from typing import List, Optional

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

logger = logging.getLogger(__name__)

FG_COLOR = "rgb(167,199,231)"
PANEL_STYLE = f"{FG_COLOR} on black"

SHORT_LABELS = {
    "UTC": "UTC",
    "Local": "Loc",
    "Geographic": "Geo",
}


class SurfaceError(Exception):
    """The terminal could not be prepared for drawing."""


def format_line(line) -> str:
    label = SHORT_LABELS.get(line.label, line.label)
    return f"{label}: {line.formatted_time}"


def build_panel(title: str, lines: List, height: Optional[int] = None) -> Panel:
    """Bordered panel with the clock lines centered in both directions."""
    body = Text("\n".join(format_line(line) for line in lines), justify="center")
    return Panel(
        Align.center(body, vertical="middle"),
        title=title,
        border_style=FG_COLOR,
        style=PANEL_STYLE,
        height=height,
        expand=True,
    )


class ClockSurface:
    """Context manager around the terminal used by the clock loop."""

    def __init__(self, console: Optional[Console] = None, watch_keys: bool = True, stdin=None):
        self.console = console or Console()
        self.watch_keys = watch_keys
        self.stdin = stdin or sys.stdin
        self.old_settings = None
        self._screen = None

    def __enter__(self):
        try:
            self.setup_input_handling()
            screen = self.console.screen(hide_cursor=True, style=PANEL_STYLE)
            screen.__enter__()
            self._screen = screen
        except (termios.error, OSError) as e:
            self.restore()
            raise SurfaceError(f"Could not prepare the terminal: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restore()
        return False

    @property
    def active(self) -> bool:
        return self._screen is not None

    @property
    def watching_keys(self) -> bool:
        return self.old_settings is not None

    def setup_input_handling(self):
        """Switch stdin to cbreak mode so key presses arrive unbuffered (Unix only)."""
        if not self.watch_keys or os.name == 'nt':
            return
        if not self.stdin.isatty():
            logger.debug("stdin is not a terminal, key presses will not be watched")
            return
        fd = self.stdin.fileno()
        self.old_settings = termios.tcgetattr(fd)
        # cbreak keeps ISIG, so Ctrl+C still arrives as SIGINT
        tty.setcbreak(fd)

    def restore_input_handling(self):
        if self.old_settings is None:
            return
        settings, self.old_settings = self.old_settings, None
        termios.tcsetattr(self.stdin.fileno(), termios.TCSADRAIN, settings)

    def restore(self):
        """Leave the alternate screen and restore the input mode. Safe to call twice."""
        try:
            if self._screen is not None:
                screen, self._screen = self._screen, None
                screen.__exit__(None, None, None)
                logger.debug("Left alternate screen")
        finally:
            self.restore_input_handling()

    def key_pressed(self) -> bool:
        """Consume and report one pending key press, without waiting."""
        if not self.watching_keys:
            return False
        readable, _, _ = select.select([self.stdin], [], [], 0)
        if not readable:
            return False
        # Raw bytes, never decoded: any byte counts as a key
        os.read(self.stdin.fileno(), 1024)
        return True

    def draw(self, title: str, lines: List):
        """Repaint the whole screen with a fresh panel."""
        if not self.active:
            raise SurfaceError("Surface is not active")
        self._screen.update(build_panel(title, lines, height=self.console.size.height))
