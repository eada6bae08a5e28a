#!/usr/bin/env python3
"""
Clock engine
Captures one UTC instant per tick and derives the local and geographic
clocks from it, so all three readings always agree with each other.
"""

from datetime import datetime, timezone
from typing import Callable, List, NamedTuple, Optional

from geolocation import Coordinate
from solar_time import geographic_time

TITLE = "Geo Clock"

UTC_LABEL = "UTC"
LOCAL_LABEL = "Local"
GEOGRAPHIC_LABEL = "Geographic"


class ClockSnapshot(NamedTuple):
    utc: datetime
    local: datetime
    geographic: datetime


class RenderLine(NamedTuple):
    label: str
    formatted_time: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def make_snapshot(coordinate: Coordinate, now: Optional[Callable[[], datetime]] = None) -> ClockSnapshot:
    """Read the clock once and compute all three times from that reading.

    ``now`` must return an aware UTC datetime; it defaults to the system clock.
    Local time comes from the host's configured timezone.
    """
    utc = (now or utc_now)()
    return ClockSnapshot(
        utc=utc,
        local=utc.astimezone(),
        geographic=geographic_time(utc, coordinate.longitude),
    )


def format_clock(instant: datetime) -> str:
    """24-hour ``HH:MM:SS``, zero padded, no fraction and no zone."""
    return instant.strftime("%H:%M:%S")


def render_lines(snapshot: ClockSnapshot) -> List[RenderLine]:
    # Order is fixed: UTC, Local, Geographic
    return [
        RenderLine(UTC_LABEL, format_clock(snapshot.utc)),
        RenderLine(LOCAL_LABEL, format_clock(snapshot.local)),
        RenderLine(GEOGRAPHIC_LABEL, format_clock(snapshot.geographic)),
    ]


def build_title(coordinate: Coordinate) -> str:
    return f"{TITLE} - {coordinate.describe()}"
