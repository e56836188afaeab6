# src/jobber/jobs/job_report.py

from __future__ import annotations

import csv
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import TextIO

from .job_codec import format_timestamp
from .job_models import DEFAULT_RESOLUTION, Job

DayKey = tuple[int, int, int]
# (year, month, day)

EXPORT_COLUMNS = ("pos", "start", "end", "hours", "message", "tags", "pay")
_COLUMN_ALIASES = {
    "#": "pos",
    "s": "start",
    "e": "end",
    "h": "hours",
    "m": "message",
    "t": "tags",
    "p": "pay",
}


def aggregate(
    jobs: Iterable[Job],
    *,
    resolution: float = DEFAULT_RESOLUTION,
    now: datetime | None = None,
) -> dict[DayKey, float]:
    """Sum rounded hours per start day. Open jobs count with their elapsed time."""
    out: dict[DayKey, float] = defaultdict(float)
    for j in jobs:
        out[(j.year, j.month, j.day)] += j.hours(resolution, now)
    return dict(sorted(out.items()))


def monthly_totals(days: dict[DayKey, float]) -> dict[tuple[int, int], float]:
    out: dict[tuple[int, int], float] = defaultdict(float)
    for (y, m, _d), hours in days.items():
        out[(y, m)] += hours
    return dict(sorted(out.items()))


def weekly_totals(days: dict[DayKey, float]) -> dict[tuple[int, int], float]:
    """Totals per ISO (year, week)."""
    out: dict[tuple[int, int], float] = defaultdict(float)
    for (y, m, d), hours in days.items():
        iso = date(y, m, d).isocalendar()
        out[(iso.year, iso.week)] += hours
    return dict(sorted(out.items()))


def pay(hours: float, rate: float | None) -> float | None:
    return None if rate is None else round(hours * rate, 2)


def known_tags(jobs: Iterable[Job]) -> list[str]:
    """Every distinct tag, sorted so indexes stay stable across runs."""
    return sorted({t for j in jobs for t in j.tags})


def tag_index(tag: str, jobs: Iterable[Job]) -> int | None:
    """Stable index of `tag` among all known tags (e.g. to pick a color)."""
    tags = known_tags(jobs)
    return tags.index(tag) if tag in tags else None


def resolve_columns(raw: str | Sequence[str] | None) -> list[str]:
    if raw is None:
        return list(EXPORT_COLUMNS)
    names = raw.split(",") if isinstance(raw, str) else list(raw)
    out: list[str] = []
    for n in names:
        key = n.strip().lower()
        key = _COLUMN_ALIASES.get(key, key)
        if key not in EXPORT_COLUMNS:
            raise ValueError(f"Unknown column: {n!r}")
        out.append(key)
    return out


def export_csv(
    out: TextIO,
    jobs: Iterable[tuple[int, Job]],
    *,
    columns: str | Sequence[str] | None = None,
    resolution: float = DEFAULT_RESOLUTION,
    rate: float | None = None,
    now: datetime | None = None,
) -> int:
    """Write (position, job) pairs as CSV with a header row. Returns rows written."""
    cols = resolve_columns(columns)
    writer = csv.writer(out)
    writer.writerow(cols)
    n = 0
    for pos, j in jobs:
        hours = j.hours(resolution, now)
        values = {
            "pos": pos,
            "start": format_timestamp(j.start),
            "end": format_timestamp(j.effective_end(now)),
            "hours": f"{hours:g}",
            "message": j.message,
            "tags": ",".join(j.tags),
            "pay": "" if rate is None else f"{pay(hours, rate):.2f}",
        }
        writer.writerow([values[c] for c in cols])
        n += 1
    return n
