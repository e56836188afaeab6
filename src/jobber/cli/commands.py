# src/jobber/cli/commands.py

from __future__ import annotations

import io
import logging
import shlex
from collections.abc import Callable, Iterable
from datetime import datetime

from ..core.errors import InvalidInterval, JobberError, ParseFailure
from ..core.state import AppState
from ..jobs.job_models import Job, parse_tags
from ..jobs.job_report import aggregate, export_csv, known_tags, monthly_totals, pay
from ..jobs.job_store import IndexedJob
from ..temporal.duration import parse_duration
from ..temporal.time_parser import parse_filter, parse_time

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class CommandRegistry:
    """Command registry used by the CLI entrypoint and the console loop."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def dispatch(
        self, state: AppState, argv: list[str], emit: CommandEmitter | None = None
    ) -> str:
        """Run one command given as an argument vector (["start", "9:00", ...])."""
        if not argv:
            return "Empty command. Use help to list available commands."

        name = argv[0].lstrip("/").lower()
        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: {name}. Use help to list available commands."
        logger.debug("Dispatch %s args=%s", name, argv[1:])
        return handler(state, argv[1:], emit)

    def handle(
        self, state: AppState, line: str, emit: CommandEmitter | None = None
    ) -> str | None:
        """
        Handle a console line like "start 9:00 -m 'fix bug'" (a leading "/" is accepted).
        Returns a reply string or None for an empty line.
        """
        line = line.strip()
        if not line:
            return None
        try:
            argv = shlex.split(line)
        except ValueError as e:
            return f"Cannot parse command line: {e}"
        return self.dispatch(state, argv, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----

_MESSAGE = ("-m", "--message")
_TAGS = ("-t", "--tags")


def _split_options(
    args: list[str], value_opts: Iterable[str], flag_opts: Iterable[str] = ()
) -> tuple[list[str], dict[str, str | bool]]:
    """Separate "-x value" options and "--flag" switches from positionals."""
    values = set(value_opts)
    flags = set(flag_opts)
    positionals: list[str] = []
    opts: dict[str, str | bool] = {}
    it = iter(args)
    for a in it:
        if a in values:
            try:
                opts[a.lstrip("-")[:1] if a.startswith("--") else a[1:]] = next(it)
            except StopIteration:
                raise JobberError(f"Option {a} needs a value.") from None
        elif a in flags:
            opts[a.lstrip("-")] = True
        else:
            positionals.append(a)
    return positionals, opts


def _opt_str(opts: dict[str, str | bool], key: str) -> str | None:
    v = opts.get(key)
    return v if isinstance(v, str) else None


def _message(opts: dict[str, str | bool]) -> str | None:
    raw = _opt_str(opts, "m")
    return raw.replace("\\n", "\n") if raw is not None else None


def _time_arg(raw: str | None, now: datetime, *, allow_date_only: bool = False) -> datetime:
    if raw is None:
        return now
    t = parse_time(raw, allow_date_only=allow_date_only, now=now)
    if t is None:
        raise ParseFailure(raw)
    return t


def _positions(raw: list[str]) -> list[int]:
    out: list[int] = []
    for part in ",".join(raw).split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise ParseFailure(part, "position")
        out.append(int(part))
    return out


def fmt_hours(h: float) -> str:
    """Hours as H:MM."""
    minutes = round(h * 60)
    return f"{minutes // 60}:{minutes % 60:02d}"


def _describe(state: AppState, job: Job, now: datetime) -> str:
    s = state.settings
    return job.describe(resolution=s.resolution, rate=s.rate, now=now)


def _overlap_warning(state: AppState, overlaps: list[IndexedJob], now: datetime) -> str:
    lines = ["Warning: the new job overlaps with:"]
    for pos, j in overlaps:
        lines.append(f"    Pos: {pos}")
        lines.append(_describe(state, j, now))
    return "\n".join(lines)


def _warn(emit: CommandEmitter | None, text: str) -> None:
    logger.info(text.splitlines()[0])
    if emit:
        emit(text)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def _close_open_job(state: AppState, now: datetime, emit: CommandEmitter | None) -> bool:
    """Ask for an end time of the running job until it is closed or the user gives up."""
    store = state.store
    open_job = store.open_job()
    if open_job is None:
        return True
    _warn(emit, "There is still an open job!\n" + _describe(state, open_job, now))
    while True:
        answer = state.prompter.ask_time(
            "Do you want to close this job first (enter time or nothing to cancel)?"
        )
        if not answer:
            return False
        t = parse_time(answer, now=now)
        if t is None:
            _warn(emit, "Please enter a valid time.")
            continue
        try:
            store.end_job(t)
        except InvalidInterval as e:
            _warn(emit, f"{e}. Please retry.")
            continue
        return True


def _started(state: AppState, overlaps: list[IndexedJob], now: datetime,
             emit: CommandEmitter | None) -> str:
    if overlaps:
        _warn(emit, _overlap_warning(state, overlaps, now))
    store = state.store
    last = store.last()
    if last is None:
        raise JobberError("No job was started.")
    return f"Starting new job:\n    Pos: {len(store)}\n{_describe(state, last, now)}"


def cmd_start(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    start [TIME] [-m MESSAGE] [-t TAG,TAG]
    """
    pos, opts = _split_options(args, (*_MESSAGE, *_TAGS))
    now = state.now()
    t = _time_arg(pos[0] if pos else None, now)
    # refuse a bad start before the running job gets closed
    state.store.check_start(t)
    if not _close_open_job(state, now, emit):
        return "Canceling job start. Running job remains open!"
    overlaps = state.store.start_job(t, _message(opts) or "", parse_tags(_opt_str(opts, "t")))
    return _started(state, overlaps, now, emit)


def cmd_back(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    back [TIME] [-m MESSAGE] [-t +TAG,-TAG]  -> start again with the last job's message/tags
    """
    pos, opts = _split_options(args, (*_MESSAGE, *_TAGS))
    now = state.now()
    t = _time_arg(pos[0] if pos else None, now)
    state.store.check_start(t)
    if not _close_open_job(state, now, emit):
        return "Canceling job start. Running job remains open!"
    tags = parse_tags(_opt_str(opts, "t")) or None
    overlaps = state.store.back_to_work(t, _message(opts), tags)
    return _started(state, overlaps, now, emit)


def cmd_end(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    end [TIME] [-m MESSAGE]
    """
    pos, opts = _split_options(args, _MESSAGE)
    now = state.now()
    t = _time_arg(pos[0] if pos else None, now)
    store = state.store
    message = _message(opts)
    open_job = store.open_job()
    if open_job is not None and not open_job.message and message is None:
        message = state.prompter.ask_message("Please enter a message (end with empty line):")
    job = store.end_job(t, message)
    return f"Ending job:\n    Pos: {len(store)}\n{_describe(state, job, now)}"


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    add START END | add START -d DURATION | add -d DURATION  (ending now)
    """
    pos, opts = _split_options(args, (*_MESSAGE, *_TAGS, "-d", "--duration"))
    now = state.now()
    raw_duration = _opt_str(opts, "d")
    duration = parse_duration(raw_duration) if raw_duration is not None else None
    if raw_duration is not None and duration is None:
        raise ParseFailure(raw_duration, "duration")

    try:
        if len(pos) == 2 and duration is None:
            start, end = _time_arg(pos[0], now), _time_arg(pos[1], now)
        elif len(pos) == 1 and duration is not None:
            start = _time_arg(pos[0], now)
            end = start + duration
        elif not pos and duration is not None:
            end = now
            start = end - duration
        else:
            return "Usage: add START END | add START -d DURATION | add -d DURATION"
    except OverflowError:
        raise ParseFailure(raw_duration, "duration") from None

    store = state.store
    overlaps = store.add_job(start, end, _message(opts) or "", parse_tags(_opt_str(opts, "t")))
    if overlaps:
        _warn(emit, _overlap_warning(state, overlaps, now))
    added = next(p for p, j in store.indexed() if j.start == start and j.end == end)
    return f"Adding job:\n    Pos: {added}\n{_describe(state, store.get(added), now)}"


def cmd_cancel(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    _, opts = _split_options(args, (), ("-y", "--yes"))
    store = state.store
    open_job = store.open_job()
    if open_job is not None and not (opts.get("y") or opts.get("yes")):
        if not state.prompter.confirm(
            f"{_describe(state, open_job, state.now())}\nDo you really want to cancel the running job?"
        ):
            return "Cancel aborted. Running job remains open."
    job = store.cancel_open_job()
    return f"Canceled job started {job.start:%a %b %d %Y, %H:%M}."


def cmd_drop(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    drop POS [--yes]
    """
    pos, opts = _split_options(args, (), ("-y", "--yes"))
    positions = _positions(pos)
    if len(positions) != 1:
        return "Usage: drop POS"
    store = state.store
    job = store.get(positions[0])
    if not (opts.get("y") or opts.get("yes")):
        if not state.prompter.confirm(
            f"{_describe(state, job, state.now())}\nDo you really want to delete this job?"
        ):
            return "Deletion canceled."
    store.drop(positions[0])
    return f"Deleted job #{positions[0]}."


def cmd_join(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    join POS,POS[,...] [--yes]
    """
    pos, opts = _split_options(args, (), ("-y", "--yes"))
    positions = _positions(pos)
    store = state.store
    plan = store.preview_join(positions)
    joined = ",".join(str(p) for p in plan.positions)
    summary = (
        f"Joining jobs {joined}:\n{_describe(state, plan.merged, state.now())}\n"
        f"Hours: {plan.hours_before:g} -> {plan.hours_after:g} ({plan.delta:+g})"
    )
    if not (opts.get("y") or opts.get("yes")):
        if not state.prompter.confirm(
            f"{summary}\nDo you really want to merge {len(plan.positions)} jobs into the above job?"
        ):
            return "Canceled join."
    store.join(plan)
    return f"{summary}\nMerged jobs {joined} into position {plan.positions[0]}."


def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    edit POS [-s START] [-e END] [-m MESSAGE] [-t TAGS|+TAG,-TAG]
    """
    pos, opts = _split_options(args, (*_MESSAGE, *_TAGS, "-s", "--start", "-e", "--end"))
    positions = _positions(pos)
    if len(positions) != 1:
        return "Usage: edit POS [-s START] [-e END] [-m MESSAGE] [-t TAGS]"
    now = state.now()
    raw_start, raw_end, raw_tags = _opt_str(opts, "s"), _opt_str(opts, "e"), _opt_str(opts, "t")
    job = state.store.edit(
        positions[0],
        start=_time_arg(raw_start, now, allow_date_only=True) if raw_start else None,
        end=_time_arg(raw_end, now, allow_date_only=True) if raw_end else None,
        message=_message(opts),
        tags=parse_tags(raw_tags) if raw_tags is not None else None,
    )
    return f"Modified job:\n{_describe(state, job, now)}"


def _filtered(state: AppState, pos: list[str], opts: dict[str, str | bool], now: datetime):
    query = None
    if pos:
        query = parse_filter(" ".join(pos), now=now)
        if query is None:
            raise ParseFailure(" ".join(pos), "filter")
    return state.store.filter(query, tags=parse_tags(_opt_str(opts, "t")), now=now)


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    list [RANGE|TIME|COUNT] [-t TAGS]
    """
    pos, opts = _split_options(args, _TAGS)
    now = state.now()
    jobs = _filtered(state, pos, opts, now)
    if not jobs:
        return "No jobs."
    parts = [f"    Pos: {p}\n{_describe(state, j, now)}\n" for p, j in jobs]
    open_job = state.store.open_job()
    if open_job is not None:
        parts.append(f"Job running since {fmt_hours(open_job.hours_exact(now))} hour(s)!")
    return "\n".join(parts).rstrip()


def cmd_report(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    report [RANGE|TIME|COUNT] [-t TAGS]  -> hours per day and month
    """
    pos, opts = _split_options(args, _TAGS)
    now = state.now()
    s = state.settings
    jobs = _filtered(state, pos, opts, now)
    days = aggregate((j for _, j in jobs), resolution=s.resolution, now=now)
    if not days:
        return "No jobs."

    lines: list[str] = []
    for (year, month), total in monthly_totals(days).items():
        lines.append(f"{MONTHS[month - 1]} {year}:")
        for (y, m, d), hours in days.items():
            if (y, m) == (year, month):
                lines.append(f"  {datetime(y, m, d):%a %d}  {hours:>6g}")
        txt = f"  total {total:g} hrs."
        if s.rate is not None:
            txt += f" / ${pay(total, s.rate):.2f}"
        lines.append(txt)

    all_hours = sum(days.values())
    txt = f"Total: {len(jobs)} jobs, {all_hours:g} hrs."
    if s.rate is not None:
        txt += f" / ${pay(all_hours, s.rate):.2f}"
    lines.append(txt)
    return "\n".join(lines)


def cmd_export(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    export [RANGE|TIME|COUNT] [-t TAGS] [--columns pos,start,end,hours,message,tags,pay]
    """
    pos, opts = _split_options(args, (*_TAGS, "-c", "--columns"))
    now = state.now()
    s = state.settings
    jobs = _filtered(state, pos, opts, now)
    out = io.StringIO()
    try:
        export_csv(out, jobs, columns=_opt_str(opts, "c"), resolution=s.resolution, rate=s.rate,
                   now=now)
    except ValueError as e:
        raise JobberError(str(e)) from e
    return out.getvalue().rstrip("\r\n")


def cmd_tags(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    tags = known_tags(state.store)
    if not tags:
        return "No tags."
    return "\n".join(f"{i:>3}  {t}" for i, t in enumerate(tags))


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("start", cmd_start, help_text="Start a job: start [TIME] [-m MSG] [-t TAGS].",
                  aliases=["s"])
registry.register("end", cmd_end, help_text="End the running job: end [TIME] [-m MSG].",
                  aliases=["e"])
registry.register("add", cmd_add, help_text="Add a finished job: add START END | add START -d DUR.")
registry.register("back", cmd_back, help_text="Start again with the last job's message and tags.",
                  aliases=["b"])
registry.register("cancel", cmd_cancel, help_text="Discard the running job.")
registry.register("drop", cmd_drop, help_text="Delete a job: drop POS.", aliases=["D"])
registry.register("join", cmd_join, help_text="Merge jobs: join POS,POS[,...].", aliases=["c"])
registry.register("edit", cmd_edit, help_text="Edit a job: edit POS [-s START] [-e END] [-m MSG].")
registry.register("list", cmd_list, help_text="List jobs: list [RANGE|TIME|COUNT] [-t TAGS].",
                  aliases=["l"])
registry.register("report", cmd_report, help_text="Hours per day and month: report [FILTER].",
                  aliases=["r"])
registry.register("export", cmd_export, help_text="CSV export: export [FILTER] [-c COLUMNS].")
registry.register("tags", cmd_tags, help_text="List all known tags.")
