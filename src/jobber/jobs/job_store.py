# src/jobber/jobs/job_store.py

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..core.errors import (
    InvalidInterval,
    InvalidPosition,
    JobberError,
    NoOpenJob,
    OpenJobExists,
    ParseFailure,
)
from ..temporal.time_parser import (
    CountFilter,
    JobFilter,
    RangeFilter,
    SinceFilter,
    parse_filter,
)
from .job_codec import decode_job, encode_job
from .job_models import DEFAULT_RESOLUTION, Job, modify_tags, normalize_tags

logger = logging.getLogger(__name__)

IndexedJob = tuple[int, Job]
# (1-based position, job)


@dataclass(frozen=True, slots=True)
class JoinPlan:
    """A computed but not yet applied merge of several jobs."""

    positions: tuple[int, ...]
    sources: tuple[Job, ...]
    merged: Job
    hours_before: float
    hours_after: float

    @property
    def delta(self) -> float:
        """Hours gained (gap filled) or lost (overlap collapsed) by the merge."""
        return self.hours_after - self.hours_before


class JobStore:
    """
    Ordered, file-backed collection of jobs.

    Jobs are kept sorted by start time, so positions (1-based) are stable
    between listing and a following drop/join. Every mutation builds a new
    list and swaps it in; the file is rewritten as a whole by save(), and only
    if something changed.

    At most one job is open, and it is always the last one.
    """

    def __init__(
        self,
        jobs: Iterable[Job] | None = None,
        *,
        path: str | Path | None = None,
        resolution: float = DEFAULT_RESOLUTION,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._resolution = resolution
        self._jobs: list[Job] = sorted(jobs or (), key=lambda j: j.start)
        self._modified = False

    # ---- persistence ----

    @classmethod
    def load(cls, path: str | Path, *, resolution: float = DEFAULT_RESOLUTION) -> JobStore:
        """
        Load all jobs from `path`. A missing file is an empty store.

        Any undecodable line raises DecodeFailure and nothing is loaded.
        """
        p = Path(path)
        jobs: list[Job] = []
        if p.exists():
            for n, line in enumerate(p.read_text("utf-8").splitlines(), start=1):
                if not line.strip():
                    continue
                jobs.append(decode_job(line, n))
        store = cls(jobs, path=p, resolution=resolution)
        opened = [pos for pos, j in store.indexed() if j.is_open]
        if len(opened) > 1 or (opened and opened[-1] != len(store)):
            logger.warning("Jobs file %s has open jobs at positions %s", p, opened)
        logger.info("JobStore ready file=%s total=%s", p, len(store))
        return store

    def save(self, path: str | Path | None = None, *, force: bool = False) -> bool:
        """
        Rewrite the whole file sorted by start time.

        Skipped (returns False) when nothing was modified, unless `force`.
        """
        target = Path(path) if path is not None else self._path
        if target is None:
            raise ValueError("JobStore has no file path")
        if not (self._modified or force):
            logger.debug("JobStore unchanged; not writing %s", target)
            return False

        target.parent.mkdir(parents=True, exist_ok=True)
        body = "".join(encode_job(j) + "\n" for j in sorted(self._jobs, key=lambda j: j.start))
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_text(body, "utf-8")
        os.replace(tmp, target)
        self._modified = False
        logger.info("Saved %d jobs to %s", len(self._jobs), target)
        return True

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def resolution(self) -> float:
        return self._resolution

    def _replace(self, jobs: list[Job]) -> None:
        self._jobs = sorted(jobs, key=lambda j: j.start)
        self._modified = True

    # ---- access ----

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(self._jobs)

    @property
    def jobs(self) -> tuple[Job, ...]:
        return tuple(self._jobs)

    def indexed(self) -> list[IndexedJob]:
        return list(enumerate(self._jobs, start=1))

    def get(self, position: int) -> Job:
        if not 1 <= position <= len(self._jobs):
            raise InvalidPosition(position, len(self._jobs))
        return self._jobs[position - 1]

    def last(self) -> Job | None:
        return self._jobs[-1] if self._jobs else None

    def _open_entry(self) -> IndexedJob | None:
        # a hand-edited file may hold an open job that is not the last one
        for pos, j in reversed(self.indexed()):
            if j.is_open:
                return pos, j
        return None

    def open_job(self) -> Job | None:
        entry = self._open_entry()
        return entry[1] if entry is not None else None

    def overlapping(self, other: Job | datetime, now: datetime | None = None) -> list[IndexedJob]:
        """Jobs whose interval intersects `other` (a job or a single time point)."""
        return [(pos, j) for pos, j in self.indexed() if j is not other and j.intersect(other, now)]

    # ---- mutations ----

    def _ensure_no_open_job(self) -> None:
        entry = self._open_entry()
        if entry is not None:
            raise OpenJobExists(entry[0])

    def check_start(self, t: datetime) -> None:
        """Raise InvalidInterval if a running job may not start at `t`."""
        last = self.last()
        if last is not None and t < last.start:
            raise InvalidInterval(
                last.start, t, f"A running job must start after the latest job ({last.start})"
            )

    def start_job(
        self, t: datetime, message: str = "", tags: Iterable[str] | None = None
    ) -> list[IndexedJob]:
        """
        Append a new open job starting at `t`.

        Raises OpenJobExists while another job is running. Returns the existing
        jobs that overlap `t` (a warning for the caller, not an error).
        """
        self._ensure_no_open_job()
        self.check_start(t)
        overlaps = self.overlapping(t)
        job = Job(start=t, message=message or "", tags=normalize_tags(tags))
        self._replace([*self._jobs, job])
        logger.debug("Job started at %s overlaps=%d", t, len(overlaps))
        return overlaps

    def add_job(
        self,
        start: datetime,
        end: datetime,
        message: str = "",
        tags: Iterable[str] | None = None,
    ) -> list[IndexedJob]:
        """Insert a finished job. Returns overlapping jobs as a warning."""
        job = Job(start=start, end=end, message=message or "", tags=normalize_tags(tags))
        open_job = self.open_job()
        if open_job is not None and end > open_job.start:
            raise OpenJobExists(len(self._jobs))
        overlaps = self.overlapping(job)
        self._replace([*self._jobs, job])
        logger.debug("Job added %s - %s overlaps=%d", start, end, len(overlaps))
        return overlaps

    def back_to_work(
        self,
        t: datetime,
        message: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> list[IndexedJob]:
        """Start a new job reusing message and tags of the latest job."""
        last = self.last()
        if last is None:
            raise JobberError("There is no previous job to continue.")
        new_tags = modify_tags(last.tags, tags) if tags else list(last.tags)
        return self.start_job(t, message if message is not None else last.message, new_tags)

    def end_job(self, t: datetime, message: str | None = None) -> Job:
        """
        Close the open job at `t`.

        `message` only fills in an empty message. Raises NoOpenJob or
        InvalidInterval (t not after the job's start); the job stays open then.
        """
        entry = self._open_entry()
        if entry is None:
            raise NoOpenJob()
        position, job = entry
        closed = job.copy().set_end(t)
        if message and not closed.message:
            closed.message = message
        self._replace([closed if pos == position else j for pos, j in self.indexed()])
        logger.debug("Job ended at %s", t)
        return closed

    def cancel_open_job(self) -> Job:
        """Remove the running job entirely."""
        entry = self._open_entry()
        if entry is None:
            raise NoOpenJob()
        position, job = entry
        self._replace([j for pos, j in self.indexed() if pos != position])
        logger.debug("Open job started at %s cancelled", job.start)
        return job

    def drop(self, position: int) -> Job:
        job = self.get(position)
        self._replace([j for pos, j in self.indexed() if pos != position])
        logger.debug("Job dropped pos=%s", position)
        return job

    def preview_join(self, positions: Sequence[int], resolution: float | None = None) -> JoinPlan:
        """
        Compute the merge of the jobs at `positions` without applying it.

        The merged job spans the earliest start to the latest end, joins the
        messages with newlines in position order and unites the tags.
        """
        res = self._resolution if resolution is None else resolution
        pos = tuple(sorted(set(positions)))
        if len(pos) < 2:
            raise JobberError("Join needs at least two different positions.")
        parts = [self.get(p) for p in pos]
        for p, j in zip(pos, parts):
            if j.is_open:
                raise OpenJobExists(p)

        merged = Job(
            start=min(j.start for j in parts),
            end=max(j.end for j in parts if j.end is not None),
            message="\n".join(j.message for j in parts),
            tags=[t for j in parts for t in j.tags],
        )
        return JoinPlan(
            positions=pos,
            sources=tuple(parts),
            merged=merged,
            hours_before=sum(j.hours(res) for j in parts),
            hours_after=merged.hours(res),
        )

    def join(self, plan: JoinPlan | Sequence[int]) -> Job:
        """
        Apply a join. The merged job replaces all joined positions.

        A plan prepared before another change no longer matches its positions
        and is refused.
        """
        if not isinstance(plan, JoinPlan):
            plan = self.preview_join(plan)
        for p, source in zip(plan.positions, plan.sources):
            if self.get(p) is not source:
                raise JobberError(f"Job #{p} changed since the join was prepared.")
        keep = [j for pos, j in self.indexed() if pos not in plan.positions]
        self._replace([*keep, plan.merged])
        logger.debug("Jobs joined positions=%s delta=%.2f", plan.positions, plan.delta)
        return plan.merged

    def edit(
        self,
        position: int,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        message: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> Job:
        """Change fields of one job. Interval violations leave the store untouched."""
        job = self.get(position).copy()
        if start is not None and end is not None and end > job.start:
            # widen first so the intermediate state stays valid
            job.set_end(end).set_start(start)
        else:
            if start is not None:
                job.set_start(start)
            if end is not None:
                job.set_end(end)
        if message is not None:
            job.message = message
        if tags is not None:
            job.tags = modify_tags(job.tags, tags)

        jobs = [job if pos == position else j for pos, j in self.indexed()]
        opened = [j for j in jobs if j.is_open]
        if opened and max(j.start for j in jobs) != opened[0].start:
            raise InvalidInterval(
                opened[0].start, job.start, "The running job must stay the latest job."
            )
        self._replace(jobs)
        logger.debug("Job edited pos=%s", position)
        return job

    # ---- queries ----

    def filter(
        self,
        query: JobFilter | str | None = None,
        *,
        tags: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> list[IndexedJob]:
        """
        Select jobs by one filter mode plus required tags.

        - RangeFilter: jobs overlapping the range
        - SinceFilter: jobs starting at or after the point
        - CountFilter: the last N jobs
        - None: all jobs

        A string is parsed with parse_filter(); unparseable text raises ParseFailure.
        """
        if isinstance(query, str):
            parsed = parse_filter(query, now=now)
            if parsed is None:
                raise ParseFailure(query, "filter")
            query = parsed

        required = normalize_tags(tags)
        result = [
            (pos, j) for pos, j in self.indexed() if all(t in j.tags for t in required)
        ]

        if isinstance(query, RangeFilter):
            rng = query.range
            result = [(pos, j) for pos, j in result if rng.overlaps(j.start, j.effective_end(now))]
        elif isinstance(query, SinceFilter):
            result = [(pos, j) for pos, j in result if j.start >= query.since]
        elif isinstance(query, CountFilter):
            result = result[-query.count :] if query.count > 0 else []
        return result
