"""Shared test fixtures."""

import os
import threading
import time
from datetime import datetime, timezone

import pytest
from rich.console import Console

from geolocation import Coordinate


class FakeSurface:
    """Drawing surface that records what the clock loop asks of it."""

    def __init__(self, fail_on=(), watch_keys=False):
        self.frames = []
        self.enter_count = 0
        self.exit_count = 0
        self.fail_on = set(fail_on)
        self.watching_keys = watch_keys
        self.pending_keys = 0

    def __enter__(self):
        self.enter_count += 1
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit_count += 1
        return False

    def draw(self, title, lines):
        index = len(self.frames)
        self.frames.append((title, list(lines)))
        if index in self.fail_on:
            raise RuntimeError(f"frame {index} broke")

    def key_pressed(self):
        if self.pending_keys:
            self.pending_keys -= 1
            return True
        return False


class FixedClock:
    """Callable returning a fixed UTC instant."""

    def __init__(self, instant=None):
        self.instant = instant or datetime(2024, 3, 1, 0, 0, 0, tzinfo=timezone.utc)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.instant


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def fixed_clock():
    return FixedClock()


@pytest.fixture
def coordinate():
    return Coordinate(longitude=90.0, latitude=23.7, label="Dhaka")


class PtyTerminal:
    """A real pseudo terminal: the slave side plays the user's terminal.

    Everything written to the slave is collected from the master by a
    background reader, so rich never blocks on a full pty buffer.
    """

    ALT_SCREEN_OFF = b"\x1b[?1049l"

    def __init__(self, width=40, height=12):
        import pty

        self.width = width
        self.height = height
        self.master, self.slave = pty.openpty()
        self.stdin = os.fdopen(self.slave, "r", closefd=False)
        self.stdout = os.fdopen(self.slave, "w", encoding="utf-8", closefd=False)
        self.output = bytearray()
        self._reader = threading.Thread(target=self._drain, daemon=True)
        self._reader.start()

    def _drain(self):
        while True:
            try:
                data = os.read(self.master, 4096)
            except OSError:
                return
            if not data:
                return
            self.output.extend(data)

    def console(self):
        return Console(
            file=self.stdout,
            force_terminal=True,
            width=self.width,
            height=self.height,
            color_system="standard",
            legacy_windows=False,
        )

    def press(self, data=b"q"):
        os.write(self.master, data)

    def canonical(self):
        import termios

        return bool(termios.tcgetattr(self.slave)[3] & termios.ICANON)

    def wait_for_output(self, marker, timeout=2.0):
        deadline = time.monotonic() + timeout
        while marker not in self.output and time.monotonic() < deadline:
            time.sleep(0.01)
        # let anything written right after the marker arrive too
        time.sleep(0.05)
        return bytes(self.output)

    def close(self):
        self.stdout.close()
        self.stdin.close()
        # closing the slave side ends the reader with EIO
        os.close(self.slave)
        self._reader.join(1)
        os.close(self.master)


@pytest.fixture
def pty_terminal():
    if os.name == 'nt':
        pytest.skip("needs a POSIX pseudo terminal")
    terminal = PtyTerminal()
    try:
        yield terminal
    finally:
        terminal.close()
