#!/usr/bin/env python3
"""
Terminal Geo Clock
Shows UTC, local time and the solar mean ("geographic") time for the
longitude this machine appears to be at.

Usage: python geo_clock.py [--log-file PATH] [-v] [--no-keys]

Controls:
- Ctrl+C: Quit
- Any key: Quit (unless --no-keys is given)
"""

import argparse
import logging
import queue
import signal
import sys
import threading
import time
from contextlib import contextmanager
from typing import Optional, Tuple

import colorama
from colorama import Fore, Style

from clock_engine import build_title, make_snapshot, render_lines
from clock_surface import ClockSurface, SurfaceError
from geolocation import GeolocationError, fetch_coordinate

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0
KEY_POLL_SECONDS = 0.1
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


class ExitChannel:
    """One-way notification from signal handlers and threads to the loop.

    ``notify`` never blocks and may be called from a signal handler.
    SimpleQueue is unbounded, but its ``put`` is reentrant, which a bounded
    Queue's is not. Extra notifications are harmless: the loop stops on the
    first one and the channel is dropped with it.
    """

    def __init__(self):
        self._queue = queue.SimpleQueue()

    def notify(self, reason: str = "interrupt"):
        self._queue.put(reason)

    def wait(self, timeout: Optional[float] = None) -> Optional[str]:
        """First pending reason, or None if nothing arrived within ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


@contextmanager
def interrupt_handler(channel: ExitChannel):
    """Route SIGINT/SIGTERM into ``channel`` while the block runs."""
    def handler(signum, frame):
        channel.notify("interrupt")

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handler)
    try:
        yield channel
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


class KeyWatcher(threading.Thread):
    """Background poll for a key press; reports the first one and stops."""

    def __init__(self, surface, channel: ExitChannel, poll: float = KEY_POLL_SECONDS):
        super().__init__(name="key-watcher", daemon=True)
        self.surface = surface
        self.channel = channel
        self.poll = poll
        self._stop_event = threading.Event()

    def run(self):
        while not self._stop_event.is_set():
            try:
                pressed = self.surface.key_pressed()
            except (OSError, ValueError) as e:
                logger.warning("Stopped watching for key presses: %s", e)
                return
            if pressed:
                self.channel.notify("key")
                return
            self._stop_event.wait(self.poll)

    def stop(self):
        self._stop_event.set()


def draw_frame(surface, title: str, coordinate, now=None) -> bool:
    """Draw one frame. A failed frame is logged and skipped."""
    try:
        surface.draw(title, render_lines(make_snapshot(coordinate, now)))
    except Exception as e:
        logger.warning("Frame skipped, retrying on next tick: %s", e)
        logger.debug("Frame failure details", exc_info=True)
        return False
    return True


def run_loop(surface, coordinate, channel: ExitChannel, tick: float = TICK_SECONDS, now=None) -> Tuple[str, int]:
    """Redraw every ``tick`` seconds until the channel reports an exit.

    Returns the exit reason and the number of frames drawn. The wait between
    frames is the wait for the exit notification, so exit latency never
    exceeds one tick.
    """
    title = build_title(coordinate)
    frames = 0
    next_tick = time.monotonic()

    while True:
        if draw_frame(surface, title, coordinate, now):
            frames += 1

        next_tick += tick
        remaining = next_tick - time.monotonic()
        if remaining < 0:
            # Frame overran the tick, start the schedule again from now
            next_tick = time.monotonic()
            remaining = 0

        reason = channel.wait(remaining)
        if reason is not None:
            logger.info("Exit requested (%s) after %d frames", reason, frames)
            return reason, frames


def setup_logging(log_file: Optional[str] = None, verbose: bool = False) -> Optional[logging.Handler]:
    """Configure the root logger. Returns the stderr handler, if one is used."""
    if log_file:
        level = logging.DEBUG if verbose else logging.INFO
        handler = logging.FileHandler(log_file)
    else:
        level = logging.DEBUG if verbose else logging.WARNING
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])
    return None if log_file else handler


@contextmanager
def muted_handler(handler: Optional[logging.Handler], level: int = logging.ERROR):
    """Raise ``handler``'s level while the block runs.

    stderr shares the terminal with the clock panel, so routine warnings are
    held back while the panel is on screen.
    """
    if handler is None:
        yield
        return
    previous = handler.level
    handler.setLevel(max(level, previous))
    try:
        yield
    finally:
        handler.setLevel(previous)


def print_error(message: str):
    print(f"{Fore.RED}Error: {message}{Style.RESET_ALL}", file=sys.stderr)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Terminal clock showing UTC, local and geographic time")
    parser.add_argument("--log-file", help="Write log messages to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    parser.add_argument("--no-keys", action="store_true", help="Only quit on Ctrl+C, ignore other keys")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Entry point for the geo clock. Returns the process exit code."""
    args = parse_args(argv)
    stderr_handler = setup_logging(args.log_file, args.verbose)
    colorama.just_fix_windows_console()

    try:
        coordinate = fetch_coordinate()
    except GeolocationError as e:
        logger.error("Geolocation failed: %s", e)
        print_error(f"Could not determine your longitude: {e}")
        return 1
    except KeyboardInterrupt:
        return 130

    channel = ExitChannel()
    try:
        with interrupt_handler(channel), muted_handler(stderr_handler), \
                ClockSurface(watch_keys=not args.no_keys) as surface:
            watcher = None
            if surface.watching_keys:
                watcher = KeyWatcher(surface, channel)
                watcher.start()
            try:
                run_loop(surface, coordinate, channel)
            finally:
                if watcher is not None:
                    watcher.stop()
                    watcher.join(timeout=1)
    except SurfaceError as e:
        logger.error("Terminal setup failed: %s", e)
        print_error(str(e))
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
