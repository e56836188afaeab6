# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from jobber.config import Settings


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "JOBBER_APP_NAME",
        "JOBBER_LOG_LEVEL",
        "JOBBER_VERBOSE",
        "JOBBER_DATA_DIR",
        "JOBBER_FILE",
        "JOBBER_RESOLUTION",
        "JOBBER_RATE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    s = Settings.from_env(use_dotenv=False)
    assert s.app_name == "jobber"
    assert s.log_level == "INFO"
    assert s.jobs_file == Path("jobber.dat")
    assert s.resolution == 0.25
    assert s.rate is None


def test_env_values(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("JOBBER_FILE", str(tmp_path / "work.dat"))
    clean_env.setenv("JOBBER_RESOLUTION", "0.5")
    clean_env.setenv("JOBBER_RATE", "42")
    clean_env.setenv("JOBBER_VERBOSE", "yes")
    s = Settings.from_env(use_dotenv=False)
    assert s.jobs_file == tmp_path / "work.dat"
    assert s.resolution == 0.5
    assert s.rate == 42.0
    assert s.verbose
    assert s.log_level == "DEBUG"


def test_bad_resolution_falls_back(clean_env) -> None:
    clean_env.setenv("JOBBER_RESOLUTION", "-1")
    assert Settings.from_env(use_dotenv=False).resolution == 0.25
    clean_env.setenv("JOBBER_RESOLUTION", "fast")
    assert Settings.from_env(use_dotenv=False).resolution == 0.25


def test_with_overrides(settings: Settings, tmp_path: Path) -> None:
    assert settings.with_overrides() is settings

    s = settings.with_overrides(jobs_file=tmp_path / "other.dat", resolution=1, rate=10, verbose=True)
    assert s.jobs_file == tmp_path / "other.dat"
    assert s.resolution == 1.0
    assert s.rate == 10.0
    assert s.verbose and s.log_level == "DEBUG"
    assert settings.rate is None

    with pytest.raises(ValueError):
        settings.with_overrides(resolution=0)
