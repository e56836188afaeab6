# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from jobber.config import Settings
from jobber.core.state import AppState
from jobber.jobs.job_models import Job
from jobber.jobs.job_store import JobStore

from .fakes import NOW, ScriptedPrompter, at


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing into tmp_path.

    Built directly instead of from_env() to keep unit tests isolated from the
    developer's environment and .env file.
    """
    return Settings(
        app_name="jobber-test",
        log_level="DEBUG",
        verbose=False,
        data_dir=tmp_path / "data",
        jobs_file=tmp_path / "jobber.dat",
        resolution=0.25,
        rate=None,
    )


@pytest.fixture()
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture()
def store(settings: Settings) -> JobStore:
    """Three finished jobs on Dec 16 and 17, 2024."""
    return JobStore(
        [
            Job(at(16, 9), at(16, 12), "planning", ["acme"]),
            Job(at(16, 13), at(16, 17), "coding\nreview", ["acme", "dev"]),
            Job(at(17, 9), at(17, 11, 30), "support", ["internal"]),
        ],
        path=settings.jobs_file,
        resolution=settings.resolution,
    )


@pytest.fixture()
def state(settings: Settings, store: JobStore, prompter: ScriptedPrompter) -> AppState:
    """AppState wired with the sample store, scripted prompts and a fixed clock."""
    return AppState(settings=settings, store=store, prompter=prompter, clock=lambda: NOW)
