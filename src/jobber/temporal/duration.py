# src/jobber/temporal/duration.py

from __future__ import annotations

import re
from datetime import timedelta
from typing import Optional

_HM_RE = re.compile(r"^(\d+):(\d{1,2})$")
_FRACTION_RE = re.compile(r"^(\d*)[,.](\d{1,2})$")
_HOURS_RE = re.compile(r"^(\d{1,2})$")
_UNITS_RE = re.compile(r"^(?:(\d{1,2})h)?(?:(\d{1,2})m)?$")


def parse_duration(s: str | None) -> Optional[timedelta]:
    """
    Parse a work duration.

    Accepted: "2:30", "2.5", "2,5", ".25", "2", "2h30m", "2h", "15m".
    Returns None for anything else, including zero durations.
    """
    if not s:
        return None
    ss = str(s).strip()
    if not ss:
        return None

    minutes: int | None = None

    m = _HM_RE.match(ss)
    if m:
        minutes = int(m.group(1)) * 60 + int(m.group(2))

    if minutes is None:
        m = _FRACTION_RE.match(ss)
        if m:
            hours = int(m.group(1) or 0)
            minutes = hours * 60 + int(float("." + m.group(2)) * 60)

    if minutes is None:
        m = _HOURS_RE.match(ss)
        if m:
            minutes = int(m.group(1)) * 60

    if minutes is None:
        m = _UNITS_RE.match(ss)
        if m and (m.group(1) or m.group(2)):
            minutes = int(m.group(1) or 0) * 60 + int(m.group(2) or 0)

    if not minutes:
        return None
    try:
        return timedelta(minutes=minutes)
    except OverflowError:
        return None
