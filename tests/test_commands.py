# tests/test_commands.py

from __future__ import annotations

import pytest

from jobber.cli.commands import CommandRegistry, fmt_hours, registry
from jobber.core.errors import (
    InvalidInterval,
    JobberError,
    NoOpenJob,
    OpenJobExists,
    ParseFailure,
)

from .fakes import NOW, at


def run(state, line: str, emitted: list[str] | None = None) -> str:
    emit = emitted.append if emitted is not None else None
    reply = registry.handle(state, line, emit=emit)
    assert reply is not None
    return reply


def test_command_registry_routes_and_aliases(state) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    def handler(state, args, emit):
        called.append(args)
        if emit is not None:
            emit("note")
        return "ok"

    reg.register("ping", handler, "ping", aliases=["P"])
    notes: list[str] = []

    assert reg.handle(state, "ping a 'b c'") == "ok"
    assert reg.dispatch(state, ["p", "x"], emit=notes.append) == "ok"
    assert reg.handle(state, "/ping") == "ok"
    assert called == [["a", "b c"], ["x"], []]
    assert notes == ["note"]


def test_command_registry_unknown_and_empty(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "   ") is None
    assert "Unknown command" in (reg.handle(state, "nope") or "")
    assert "Cannot parse" in (reg.handle(state, "x 'open") or "")


def test_help_lists_commands(state) -> None:
    reply = run(state, "help")
    for name in ("start", "end", "list", "join", "drop", "export"):
        assert f"  {name} - " in reply


def test_start_then_end(state) -> None:
    reply = run(state, "start 9:00 -m 'daily standup' -t meet")
    assert "Starting new job" in reply
    assert "Pos: 4" in reply
    job = state.store.open_job()
    assert job.start == at(18, 9)
    assert job.message == "daily standup"
    assert job.tags == ["meet"]

    reply = run(state, "end")
    assert "Ending job" in reply
    assert state.store.get(4).end == NOW


def test_start_asks_to_close_running_job(state, prompter) -> None:
    run(state, "start 8:00")
    prompter.times = ["bogus", "7:00", "8:30"]
    emitted: list[str] = []

    run(state, "start 9:00", emitted)

    assert state.store.get(4).end == at(18, 8, 30)
    assert state.store.open_job().start == at(18, 9)
    assert len(prompter.asked) == 3
    assert emitted[0].startswith("There is still an open job!")
    assert "Please enter a valid time." in emitted


def test_start_declined_keeps_running_job(state) -> None:
    run(state, "start 8:00")
    assert run(state, "start 9:00") == "Canceling job start. Running job remains open!"
    assert state.store.open_job().start == at(18, 8)
    assert len(state.store) == 4


def test_start_before_running_job_leaves_it_open(state, prompter) -> None:
    run(state, "start 9:00")
    state.store.save()
    prompter.times = ["9:30"]

    with pytest.raises(InvalidInterval):
        run(state, "start 8:00")

    assert prompter.asked == []
    assert state.store.open_job().start == at(18, 9)
    assert not state.store.modified


def test_back_before_running_job_leaves_it_open(state, prompter) -> None:
    run(state, "start 9:00")
    prompter.times = ["9:30"]
    with pytest.raises(InvalidInterval):
        run(state, "back 8:00")
    assert state.store.open_job().start == at(18, 9)


def test_start_warns_about_overlap(state) -> None:
    state.store.drop(3)
    emitted: list[str] = []
    run(state, "start 16.12.2024,15:00", emitted)
    assert emitted and emitted[0].startswith("Warning: the new job overlaps with:")
    assert "Pos: 2" in emitted[0]


def test_invalid_time_is_reported(state) -> None:
    with pytest.raises(ParseFailure):
        run(state, "start 25:99")
    assert not state.store.modified


def test_end_prompts_for_missing_message(state, prompter) -> None:
    run(state, "start 8:00")
    prompter.messages = ["wrote docs\nand tests"]
    run(state, "end 9:45")
    job = state.store.get(4)
    assert job.message == "wrote docs\nand tests"
    assert job.hours() == 1.75


def test_end_without_open_job(state) -> None:
    with pytest.raises(NoOpenJob):
        run(state, "end")


def test_back_continues_last_job(state) -> None:
    run(state, "back 9:00 -t +billable")
    job = state.store.open_job()
    assert job.message == "support"
    assert job.tags == ["internal", "billable"]


def test_add_forms(state) -> None:
    assert "Pos: 1" in run(state, "add 15.12.2024,10:00 15.12.2024,11:00 -m early")
    run(state, "add 18.12.2024,6:00 -d 1:30")
    assert state.store.last().end == at(18, 7, 30)
    run(state, "add -d 0.5 -m quick")
    assert state.store.last().interval().start == at(18, 9, 30)
    assert run(state, "add 9:00").startswith("Usage:")
    with pytest.raises(ParseFailure):
        run(state, "add -d zero")
    with pytest.raises(ParseFailure):
        run(state, "add -d 9999999999:00")


def test_add_into_running_job_is_rejected(state) -> None:
    run(state, "start 8:00")
    with pytest.raises(OpenJobExists):
        run(state, "add 7:00 9:00")


def test_cancel_running_job(state, prompter) -> None:
    run(state, "start 8:00")
    assert run(state, "cancel") == "Cancel aborted. Running job remains open."
    prompter.confirms = [True]
    assert run(state, "cancel").startswith("Canceled job started")
    assert state.store.open_job() is None


def test_drop_needs_confirmation(state, prompter) -> None:
    assert run(state, "drop 2") == "Deletion canceled."
    assert len(state.store) == 3

    prompter.confirms = [True]
    assert run(state, "drop 2") == "Deleted job #2."
    assert [j.message for j in state.store] == ["planning", "support"]

    assert run(state, "D 1 --yes") == "Deleted job #1."
    assert run(state, "drop").startswith("Usage:")


def test_join_reports_hours_delta(state, prompter) -> None:
    assert run(state, "join 1,2") == "Canceled join."
    assert len(state.store) == 3

    prompter.confirms = [True]
    reply = run(state, "join 1 2")
    assert "Hours: 7 -> 8 (+1)" in reply
    assert "Merged jobs 1,2 into position 1." in reply
    merged = state.store.get(1)
    assert merged.message == "planning\ncoding\nreview"
    assert merged.tags == ["acme", "dev"]


def test_join_rejects_bad_positions(state) -> None:
    with pytest.raises(ParseFailure):
        run(state, "join 1,x")


def test_edit_job(state) -> None:
    reply = run(state, "edit 3 -e 12:00 -m 'support call' -t +phone")
    assert reply.startswith("Modified job:")
    job = state.store.get(3)
    assert job.end == at(18, 12)
    assert job.message == "support call"
    assert job.tags == ["internal", "phone"]


def test_edit_with_date_and_time(state) -> None:
    run(state, "edit 3 -s 17.12.2024,8:00 -e 17.12.2024,9:00")
    assert state.store.get(3).interval().end == at(17, 9)


def test_list_filters(state) -> None:
    reply = run(state, "list 17.12.2024")
    assert "Pos: 3" in reply
    assert "Pos: 1" not in reply

    reply = run(state, "list -t acme")
    assert "Pos: 1" in reply and "Pos: 2" in reply and "Pos: 3" not in reply

    reply = run(state, "list 1")
    assert "Pos: 3" in reply and "Pos: 2" not in reply

    assert run(state, "list 1.1.2020") == "No jobs."
    with pytest.raises(ParseFailure):
        run(state, "list whenever")


def test_list_notes_running_job(state) -> None:
    run(state, "start 8:45")
    assert run(state, "list").endswith("Job running since 1:15 hour(s)!")


def test_report_per_day_and_month(state) -> None:
    state.settings = state.settings.with_overrides(rate=20)
    reply = run(state, "report")
    assert reply.splitlines() == [
        "Dec 2024:",
        "  Mon 16       7",
        "  Tue 17     2.5",
        "  total 9.5 hrs. / $190.00",
        "Total: 3 jobs, 9.5 hrs. / $190.00",
    ]


def test_export_csv(state) -> None:
    reply = run(state, "export -t internal -c pos,start,hours")
    assert reply.splitlines() == ["pos,start,hours", "3,2024-12-17T09:00,2.5"]


def test_export_unknown_column(state) -> None:
    with pytest.raises(JobberError, match="Unknown column"):
        run(state, "export -c color")


def test_tags_command(state) -> None:
    assert run(state, "tags").splitlines() == ["  0  acme", "  1  dev", "  2  internal"]


def test_fmt_hours() -> None:
    assert fmt_hours(1.25) == "1:15"
    assert fmt_hours(0.1) == "0:06"
