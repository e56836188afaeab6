# src/jobber/temporal/time_parser.py

"""
Parser for loose human time expressions.

Grammar (first match wins):
  now            current time
  H:M+ / H:M-    now plus/minus hours and minutes
  Nh+ / Nm-      now plus/minus N hours or minutes
  H:M            today at H:M (yesterday if that is 12 hours or more ahead)
  DATE[,H:M]     date and optional clock time, in either order

DATE is one of:
  D.M[.Y]        german style, year defaults to the current one
  M/D/Y          english style, year required
  mon..sun       most recent such weekday (today included)
  yesterday

Every function takes an optional `now` so callers and tests can pin the clock.
Unparseable text yields None; no function here raises on bad input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .time_range import TimeRange

logger = logging.getLogger(__name__)

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_NOW_RE = re.compile(r"^now$")
_REL_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{1,2})([+-])$")
_REL_UNIT_RE = re.compile(r"^(\d+)([hm])([+-])$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{1,2})$")

_DATE_GERMAN_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})(?:\.(\d{1,4})?)?$")
_DATE_ENGLISH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{1,4})$")
_DATE_WEEKDAY_RE = re.compile(r"^(mon|tue|wed|thu|fri|sat|sun|yesterday)$")

_COUNT_RE = re.compile(r"^[-~]?(\d+)$")

_CLOCK_AMBIGUITY = timedelta(hours=12)


def current_time() -> datetime:
    """Current local time truncated to minute resolution."""
    return datetime.now().replace(second=0, microsecond=0)


def _year(raw: str | None, now: datetime) -> int:
    if not raw:
        return now.year
    y = int(raw)
    # two digit years are taken as 20xx
    return y + 2000 if y < 100 else y


def _clock(hh: str, mm: str) -> tuple[int, int] | None:
    h, m = int(hh), int(mm)
    if 0 <= h <= 23 and 0 <= m <= 59:
        return h, m
    return None


# ---- point rules ----
# Each resolver gets the regex match and the reference time and returns a
# datetime or None (e.g. "25:00" matches the clock shape but is not a time).

PointResolver = Callable[[re.Match[str], datetime], datetime | None]


def _resolve_now(_m: re.Match[str], now: datetime) -> datetime | None:
    return now


def _resolve_rel_clock(m: re.Match[str], now: datetime) -> datetime | None:
    delta = timedelta(hours=int(m.group(1)), minutes=int(m.group(2)))
    return now + delta if m.group(3) == "+" else now - delta


def _resolve_rel_unit(m: re.Match[str], now: datetime) -> datetime | None:
    n = int(m.group(1))
    delta = timedelta(hours=n) if m.group(2) == "h" else timedelta(minutes=n)
    return now + delta if m.group(3) == "+" else now - delta


def _resolve_clock(m: re.Match[str], now: datetime) -> datetime | None:
    hm = _clock(m.group(1), m.group(2))
    if hm is None:
        return None
    t = now.replace(hour=hm[0], minute=hm[1], second=0, microsecond=0)
    if t - now >= _CLOCK_AMBIGUITY:
        t -= timedelta(days=1)
    return t


TIME_RULES: list[tuple[str, re.Pattern[str], PointResolver]] = [
    ("now", _NOW_RE, _resolve_now),
    ("relative clock", _REL_CLOCK_RE, _resolve_rel_clock),
    ("relative unit", _REL_UNIT_RE, _resolve_rel_unit),
    ("clock", _CLOCK_RE, _resolve_clock),
]


# ---- date segments ----


def _date_german(m: re.Match[str], now: datetime) -> date | None:
    try:
        return date(_year(m.group(3), now), int(m.group(2)), int(m.group(1)))
    except ValueError:
        return None


def _date_english(m: re.Match[str], now: datetime) -> date | None:
    try:
        return date(_year(m.group(3), now), int(m.group(1)), int(m.group(2)))
    except ValueError:
        return None


def _date_weekday(m: re.Match[str], now: datetime) -> date | None:
    today = now.date()
    name = m.group(1)
    if name == "yesterday":
        return today - timedelta(days=1)
    # walk backwards, never forwards
    back = (today.weekday() - WEEKDAYS.index(name)) % 7
    return today - timedelta(days=back)


DATE_RULES: list[tuple[str, re.Pattern[str], Callable[[re.Match[str], datetime], date | None]]] = [
    ("german date", _DATE_GERMAN_RE, _date_german),
    ("english date", _DATE_ENGLISH_RE, _date_english),
    ("weekday", _DATE_WEEKDAY_RE, _date_weekday),
]


def _parse_date_segment(segment: str, now: datetime) -> date | None:
    for name, rx, resolve in DATE_RULES:
        m = rx.match(segment)
        if m:
            logger.debug("segment %r: %s", segment, name)
            return resolve(m, now)
    return None


def resolve_date_time(text: str, now: datetime | None = None) -> tuple[datetime, bool] | None:
    """
    Resolve "DATE", "DATE,H:M", "H:M,DATE" or "now".

    Returns (time point, date_only) or None. date_only is True when no clock
    segment was given and the time defaulted to midnight.
    """
    now = now or current_time()
    text = text.strip()
    if _NOW_RE.match(text):
        return now, False

    segments = [s.strip() for s in text.split(",")]
    if not 1 <= len(segments) <= 2:
        return None

    day: date | None = None
    clock: tuple[int, int] | None = None
    for seg in segments:
        cm = _CLOCK_RE.match(seg)
        if cm:
            if clock is not None:
                return None
            clock = _clock(cm.group(1), cm.group(2))
            if clock is None:
                return None
            continue
        if day is not None:
            return None
        day = _parse_date_segment(seg, now)
        if day is None:
            return None

    if day is None:
        return None
    if clock is None:
        return datetime(day.year, day.month, day.day), True
    return datetime(day.year, day.month, day.day, clock[0], clock[1]), False


def parse_date_time(text: str, now: datetime | None = None) -> datetime | None:
    resolved = resolve_date_time(text, now)
    return resolved[0] if resolved else None


def _parse_point(
    text: str, now: datetime, allow_date_only: bool
) -> tuple[datetime, bool] | None:
    for name, rx, resolve in TIME_RULES:
        m = rx.match(text)
        if m:
            try:
                t = resolve(m, now)
            except OverflowError:
                # "99999999h-" has the right shape but no representable date
                logger.debug("parse time %r: %s out of range", text, name)
                return None
            logger.debug("parse time %r: %s -> %s", text, name, t)
            return (t, False) if t is not None else None

    resolved = resolve_date_time(text, now)
    if resolved is None:
        logger.debug("parse time %r: invalid", text)
        return None
    if resolved[1] and not allow_date_only:
        logger.debug("parse time %r: date without time not allowed", text)
        return None
    logger.debug("parse time %r: date and time -> %s", text, resolved[0])
    return resolved


def parse_time(
    text: str | None, *, allow_date_only: bool = False, now: datetime | None = None
) -> datetime | None:
    """Parse a single time point. Returns None if `text` matches no rule."""
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    resolved = _parse_point(text, now or current_time(), allow_date_only)
    return resolved[0] if resolved else None


def parse_range(text: str | None, *, now: datetime | None = None) -> TimeRange | None:
    """
    Parse "A-B" (either side optional, defaulting to now) or a bare date.

    A bare date as the end point (or as the whole range) extends to the end
    of that day. Empty or inverted ranges are invalid.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    now = now or current_time()

    # "2:30-" and "3h-" are relative time points, not open ranges
    if _REL_CLOCK_RE.match(text) or _REL_UNIT_RE.match(text):
        return None

    try:
        return _parse_range(text, now)
    except OverflowError:
        logger.debug("parse range %r: out of range", text)
        return None


def _parse_range(text: str, now: datetime) -> TimeRange | None:
    if "-" not in text:
        resolved = resolve_date_time(text, now)
        if resolved is None or not resolved[1]:
            return None
        return TimeRange(resolved[0], resolved[0] + timedelta(days=1))

    parts = text.split("-")
    if len(parts) != 2:
        return None
    left, right = parts[0].strip(), parts[1].strip()
    if not left and not right:
        return None

    start: datetime = now
    if left:
        resolved = _parse_point(left, now, allow_date_only=True)
        if resolved is None:
            return None
        start = resolved[0]

    end: datetime = now
    if right:
        resolved = _parse_point(right, now, allow_date_only=True)
        if resolved is None:
            return None
        end = resolved[0] + timedelta(days=1) if resolved[1] else resolved[0]

    rng = TimeRange(start, end)
    if rng.is_empty():
        logger.debug("parse range %r: empty range %s", text, rng)
        return None
    return rng


# ---- list filters ----


@dataclass(frozen=True, slots=True)
class RangeFilter:
    """Keep jobs overlapping the range."""

    range: TimeRange


@dataclass(frozen=True, slots=True)
class SinceFilter:
    """Keep jobs starting at or after the time point."""

    since: datetime


@dataclass(frozen=True, slots=True)
class CountFilter:
    """Keep the last N jobs."""

    count: int


JobFilter = RangeFilter | SinceFilter | CountFilter


def parse_filter(text: str | None, *, now: datetime | None = None) -> JobFilter | None:
    """Try range, then time point, then trailing count. None if nothing fits."""
    if text is None or not text.strip():
        return None
    text = text.strip()
    now = now or current_time()

    rng = parse_range(text, now=now)
    if rng is not None:
        return RangeFilter(rng)

    t = parse_time(text, allow_date_only=True, now=now)
    if t is not None:
        return SinceFilter(t)

    m = _COUNT_RE.match(text)
    if m:
        return CountFilter(int(m.group(1)))
    return None
