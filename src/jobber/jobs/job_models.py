# src/jobber/jobs/job_models.py

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from ..core.errors import InvalidInterval
from ..temporal.time_parser import current_time
from ..temporal.time_range import DISPLAY_FORMAT, TimeRange

DEFAULT_RESOLUTION = 0.25


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Strip, drop empties and duplicates; first occurrence wins the order."""
    out: list[str] = []
    for t in tags or ():
        t = t.strip()
        if t and t not in out:
            out.append(t)
    return out


def parse_tags(raw: str | None) -> list[str]:
    """Comma separated tag names -> tag list."""
    if not raw:
        return []
    return normalize_tags(raw.split(","))


def modify_tags(current: Iterable[str], modification: Iterable[str]) -> list[str]:
    """
    Apply a tag modification.

    If any entry is marked with a leading or trailing "+" / "-", the entries add
    to / remove from `current`. Otherwise the modification replaces the tags.
    """
    mods = normalize_tags(modification)
    marked = [m for m in mods if m[0] in "+-" or m[-1] in "+-"]
    if not marked:
        return mods

    tags = normalize_tags(current)
    for m in mods:
        if m.startswith("+") or m.endswith("+"):
            name = m.strip("+")
            if name and name not in tags:
                tags.append(name)
        elif m.startswith("-") or m.endswith("-"):
            name = m.strip("-")
            tags = [t for t in tags if t != name]
        elif m not in tags:
            tags.append(m)
    return tags


def round_hours(exact: float, resolution: float = DEFAULT_RESOLUTION) -> float:
    """Round to the nearest multiple of `resolution`, halves away from zero."""
    steps = exact / resolution
    n = math.floor(abs(steps) + 0.5)
    return math.copysign(n, steps) * resolution


@dataclass(slots=True)
class Job:
    """
    One tracked work interval.

    `end` is None while the job is running ("open"). Whenever `end` is set,
    start < end holds; set_start()/set_end() refuse values that would break it
    and keep the previous value.
    """

    start: datetime
    end: datetime | None = None
    message: str = ""
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.end is not None and not Job.check(self.start, self.end):
            raise InvalidInterval(self.start, self.end)
        self.tags = normalize_tags(self.tags)
        self.message = self.message or ""

    @staticmethod
    def check(start: datetime, end: datetime) -> bool:
        return start < end

    # ---- result-checked mutators ----

    def set_start(self, start: datetime) -> Job:
        if self.end is not None and not Job.check(start, self.end):
            raise InvalidInterval(start, self.end)
        self.start = start
        return self

    def set_end(self, end: datetime) -> Job:
        if not Job.check(self.start, end):
            raise InvalidInterval(self.start, end)
        self.end = end
        return self

    def copy(self) -> Job:
        return Job(start=self.start, end=self.end, message=self.message, tags=list(self.tags))

    # ---- queries ----

    @property
    def is_open(self) -> bool:
        return self.end is None

    def effective_end(self, now: datetime | None = None) -> datetime:
        if self.end is not None:
            return self.end
        return now or current_time()

    def hours_exact(self, now: datetime | None = None) -> float:
        return (self.effective_end(now) - self.start).total_seconds() / 3600.0

    def hours(self, resolution: float = DEFAULT_RESOLUTION, now: datetime | None = None) -> float:
        return round_hours(self.hours_exact(now), resolution)

    def interval(self, now: datetime | None = None) -> TimeRange:
        return TimeRange(self.start, self.effective_end(now))

    def intersect(self, other: Job | datetime, now: datetime | None = None) -> TimeRange | None:
        """
        Overlap of this job's [start, end) with another job or a single point.

        A point t counts as overlapping only if start < t < end. Touching
        intervals do not overlap. Open jobs extend up to `now`.
        """
        mine = self.interval(now)
        if isinstance(other, datetime):
            if mine.start < other < mine.end:
                return TimeRange(other, other)
            return None
        theirs = other.interval(now)
        lo = max(mine.start, theirs.start)
        hi = min(mine.end, theirs.end)
        if lo < hi:
            return TimeRange(lo, hi)
        return None

    @property
    def year(self) -> int:
        return self.start.year

    @property
    def month(self) -> int:
        return self.start.month

    @property
    def day(self) -> int:
        return self.start.day

    @property
    def date(self) -> date:
        return self.start.date()

    def describe(self, *, resolution: float = DEFAULT_RESOLUTION, rate: float | None = None,
                 now: datetime | None = None) -> str:
        """Plain multi-line description used by the CLI."""
        lines = [f"  Start: {self.start.strftime(DISPLAY_FORMAT)}"]
        if self.end is not None:
            lines.append(f"    End: {self.end.strftime(DISPLAY_FORMAT)}")
            hours = self.hours(resolution, now)
            lines.append(f"  Hours: {hours:g}")
            if rate is not None:
                lines.append(f"  Costs: {hours * rate:.2f}")
        for i, part in enumerate(self.message.splitlines()):
            lines.append(("Message: " if i == 0 else "         ") + part)
        if self.tags:
            lines.append(f"   Tags: {', '.join(self.tags)}")
        return "\n".join(lines)
