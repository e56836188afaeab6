# src/jobber/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One immutable Settings value for the whole run, passed explicitly to the
  store, the reports and the command handlers.
- CLI flags never mutate settings; they derive a new value via with_overrides().
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "JOBBER"

DEFAULT_RESOLUTION = 0.25
DEFAULT_JOBS_FILE = "jobber.dat"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    verbose: bool

    # ---- Local data paths ----
    data_dir: Path
    jobs_file: Path

    # ---- Reporting ----
    resolution: float
    rate: float | None

    @staticmethod
    def from_env(*, use_dotenv: bool = True) -> "Settings":
        if use_dotenv:
            load_dotenv(override=False)

        verbose = _env_bool(_k("VERBOSE"), False)
        log_level = _env(_k("LOG_LEVEL"), "DEBUG" if verbose else "INFO")

        resolution = _env_float(_k("RESOLUTION"), DEFAULT_RESOLUTION)
        if resolution is None or resolution <= 0:
            resolution = DEFAULT_RESOLUTION

        return Settings(
            app_name=_env(_k("APP_NAME"), "jobber") or "jobber",
            log_level=log_level,
            verbose=verbose,
            data_dir=_env_path(_k("DATA_DIR"), Path(".local/jobber")),
            jobs_file=_env_path(_k("FILE"), Path(DEFAULT_JOBS_FILE)),
            resolution=resolution,
            rate=_env_float(_k("RATE"), None),
        )

    def with_overrides(
        self,
        *,
        jobs_file: str | Path | None = None,
        resolution: float | None = None,
        rate: float | None = None,
        verbose: bool | None = None,
    ) -> "Settings":
        """Return a copy with the given CLI-level overrides applied."""
        changes: dict[str, object] = {}
        if jobs_file is not None:
            changes["jobs_file"] = Path(jobs_file).expanduser()
        if resolution is not None:
            if resolution <= 0:
                raise ValueError(f"resolution must be positive, got {resolution}")
            changes["resolution"] = float(resolution)
        if rate is not None:
            changes["rate"] = float(rate)
        if verbose:
            changes["verbose"] = True
            changes["log_level"] = "DEBUG"
        return replace(self, **changes) if changes else self


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
