"""
Time System

Terrestrial and sidereal time for the telemetry pipeline:

- local GMT expressed as hours since the start of the year
- Greenwich Apparent Sidereal Time (GAST)
- Julian Date of a calendar year
- periodic range reduction for angles and hours

Nothing here keeps state between calls. A request builds its own
``TimeState`` with :func:`time_state` and passes it along explicitly.

References:
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.), chapters 7 and 12.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from telemetry_service.constants import (
    JULIAN_CENTURY,
    JULIAN_DATE_1900,
    JULIAN_DATE_2000,
    RADIANS_PER_TIME_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    TWO_PI,
)
from telemetry_service.models import TimeState


def reduce(value: float, low: float, high: float) -> float:
    """
    Reduce a periodic value into ``[low, high)``.

    Args:
        value: Value to reduce (angle, hours, ...)
        low: Lower bound of the period
        high: Upper bound of the period

    Returns:
        Equivalent value modulo ``high - low``
    """
    period = high - low
    result = value + math.floor((high - value) / period) * period
    if result >= high:
        result -= period
    elif result < low:
        result += period
    return result


def rad2deg(radians: float) -> float:
    return 180.0 * radians / math.pi


def deg2rad(degrees: float) -> float:
    return math.pi * degrees / 180.0


def local_gmt(now: Optional[datetime] = None) -> float:
    """
    GMT hours elapsed since the start of the year, biased by one day.

    The host's UTC offset at the start of the year is added to the local hours
    (positive west of Greenwich), then 24 h are added so that differences against
    telemetry timestamps stay non-negative.

    Args:
        now: Current time. Naive or missing values use the host's local offset.

    Returns:
        Hours in the biased GMT scale
    """
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    start_of_year = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    offset_hours = -start_of_year.utcoffset().total_seconds() / SECONDS_PER_HOUR
    elapsed = now.astimezone(timezone.utc) - start_of_year.astimezone(timezone.utc)
    hours = elapsed.total_seconds() / SECONDS_PER_HOUR + offset_hours
    return hours + 24.0


def gast(days: float) -> float:
    """
    Greenwich Apparent Sidereal Time.

    Args:
        days: Days counted from 1900 January 0.5, fractional part is the time of day

    Returns:
        GAST in radians, within ``[0, 2π)``
    """
    fraction = days - int(days)
    half_epoch = (days + JULIAN_DATE_1900) - 0.5
    corrected_epoch = half_epoch - fraction
    t = (corrected_epoch - JULIAN_DATE_2000) / JULIAN_CENTURY

    # 0h Greenwich Mean Sidereal Time (seconds)
    gmst = (24110.54841 + 8640184.812866 * t + 0.093104 * t * t) - 6.2e-6 * t * t * t

    # Sidereal seconds per solar second
    rate = (1.0027379093507951 + 5.9006e-11 * t) - 5.9e-15 * t * t

    angle = (gmst + rate * fraction * SECONDS_PER_DAY) * RADIANS_PER_TIME_SECOND
    return reduce(angle, 0.0, TWO_PI)


def julian_date_of_year(year: int) -> float:
    """
    Julian Date of January 0.0 of a Gregorian year.

    Adding a TLE day-of-year (1.0 = January 1, 0h) gives the Julian Date of the epoch.
    """
    previous = year - 1
    a = math.floor(previous / 100)
    b = 2 - a + math.floor(a / 4)
    return math.floor(365.25 * previous) + 428 + 1720994.5 + b


def time_state(now: Optional[datetime] = None, server_gmt: float = math.nan) -> TimeState:
    """Build the time values for one request."""
    gmt = local_gmt(now)
    return TimeState(gmt=gmt, server_gmt=server_gmt, gast=gast(gmt / 24.0))
