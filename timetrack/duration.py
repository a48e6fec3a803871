"""
Duration Calculator
===================

Elapsed time between two timestamps, as fractional hours and as an
"<h>h <m>m" display string.

No validation happens here: callers guarantee end >= start for stored data.
Minutes are rounded half-up; a remainder that rounds to 60 rolls over into
the hour component, so the display never reads "1h 60m".
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

SECONDS_PER_HOUR = 3600
MINUTES_PER_HOUR = 60


@dataclass(frozen=True)
class Duration:
    """Elapsed time between two timestamps"""
    hours: int
    minutes: int
    total_hours: float

    @property
    def display(self) -> str:
        return f"{self.hours}h {self.minutes}m"


def elapsed_hours(start: datetime, end: datetime) -> float:
    """Fractional hours from start to end."""
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def split_hours(hours: float) -> Tuple[int, int]:
    """
    Split fractional hours into (whole hours, remainder minutes).

    >>> split_hours(2.25)
    (2, 15)
    >>> split_hours(1 + 59.6 / 60)
    (2, 0)
    """
    whole = math.floor(hours)
    minutes = math.floor((hours - whole) * MINUTES_PER_HOUR + 0.5)
    if minutes >= MINUTES_PER_HOUR:
        whole += 1
        minutes -= MINUTES_PER_HOUR
    return int(whole), int(minutes)


def format_hours(hours: float) -> str:
    """Render fractional hours as '<h>h <m>m'."""
    whole, minutes = split_hours(hours)
    return f"{whole}h {minutes}m"


def measure(start: datetime, end: datetime) -> Duration:
    total = elapsed_hours(start, end)
    whole, minutes = split_hours(total)
    return Duration(hours=whole, minutes=minutes, total_hours=total)
