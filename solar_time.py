#!/usr/bin/env python3
"""
Solar mean time from longitude
The sun moves 360 degrees in 86400 seconds, so every degree east of the
prime meridian puts the local solar clock 240 seconds ahead of UTC.
"""

import logging
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
SECONDS_PER_DEGREE = SECONDS_PER_DAY // 360


def longitude_to_offset_seconds(longitude: float) -> int:
    """Signed offset from UTC, in whole seconds, for a longitude in degrees.

    Fractional seconds are truncated toward zero, not rounded.
    """
    return int(longitude * SECONDS_PER_DEGREE)


def geographic_time(utc: datetime, longitude: float) -> datetime:
    """Shift a UTC instant to the solar mean time at ``longitude``."""
    offset = longitude_to_offset_seconds(longitude)
    logger.debug("Longitude %s -> offset %+d s", longitude, offset)
    return utc + timedelta(seconds=offset)
