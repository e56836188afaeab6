# src/jobber/temporal/time_range.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DISPLAY_FORMAT = "%a %b %d %Y, %H:%M"


@dataclass(frozen=True, slots=True)
class TimeRange:
    """Half-open interval [start, end) of minute-resolution time points."""

    start: datetime
    end: datetime

    def __contains__(self, t: datetime) -> bool:
        return self.start <= t < self.end

    def is_empty(self) -> bool:
        return self.start >= self.end

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start < end and start < self.end

    def __str__(self) -> str:
        return f"{self.start.strftime(DISPLAY_FORMAT)} - {self.end.strftime(DISPLAY_FORMAT)}"
