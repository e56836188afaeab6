# tests/test_main.py

from __future__ import annotations

import pytest

from jobber.cli import main as cli_main
from jobber.config import Settings


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    # keep pytest's own log capture handlers in place
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kwargs: None)


def test_add_then_list(settings: Settings, prompter, capsys) -> None:
    argv = ["add", "16.12.2024,9:00", "16.12.2024,10:30", "-m", "review", "-t", "acme"]
    assert cli_main.main(argv, settings=settings, prompter=prompter) == 0
    assert settings.jobs_file.read_text("utf-8") == (
        '"2024-12-16T09:00";"2024-12-16T10:30";"review";"acme"\n'
    )

    assert cli_main.main(["list", "-t", "acme"], settings=settings, prompter=prompter) == 0
    out = capsys.readouterr().out
    assert "Pos: 1" in out
    assert "Hours: 1.5" in out


def test_read_only_command_does_not_write(settings: Settings, prompter) -> None:
    assert cli_main.main(["list"], settings=settings, prompter=prompter) == 0
    assert not settings.jobs_file.exists()


def test_command_error_exit_status(settings: Settings, prompter, capsys) -> None:
    assert cli_main.main(["end"], settings=settings, prompter=prompter) == 1
    assert "There is no open job!" in capsys.readouterr().err


def test_corrupt_file_is_left_alone(settings: Settings, prompter, capsys) -> None:
    settings.jobs_file.write_text("not a job\n", "utf-8")
    assert cli_main.main(["start"], settings=settings, prompter=prompter) == 1
    assert settings.jobs_file.read_text("utf-8") == "not a job\n"
    assert "Cannot load" in capsys.readouterr().err


def test_invalid_resolution(settings: Settings, prompter) -> None:
    assert cli_main.main(["-R", "0", "list"], settings=settings, prompter=prompter) == 2


def test_money_flag_shows_costs(settings: Settings, prompter, capsys) -> None:
    cli_main.main(["add", "16.12.2024,9:00", "16.12.2024,11:00"], settings=settings, prompter=prompter)
    capsys.readouterr()
    cli_main.main(["-M", "30", "report"], settings=settings, prompter=prompter)
    assert "total 2 hrs. / $60.00" in capsys.readouterr().out


def test_file_flag_overrides_settings(settings: Settings, prompter, tmp_path) -> None:
    other = tmp_path / "other.dat"
    cli_main.main(
        ["-f", str(other), "add", "16.12.2024,9:00", "16.12.2024,11:00"],
        settings=settings,
        prompter=prompter,
    )
    assert other.exists()
    assert not settings.jobs_file.exists()
