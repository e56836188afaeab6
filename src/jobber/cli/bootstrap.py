# src/jobber/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes the Settings value for this run,
- ensures local (gitignored) directories exist,
- loads the JobStore and wires it with a prompter into AppState,
- saves the store on shutdown when it was modified.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import Prompter
from ..core.state import AppState
from ..jobs.job_store import JobStore
from .console_prompt import ConsolePrompter

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.jobs_file.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *, settings: Settings | None = None, prompter: Prompter | None = None
) -> AppState:
    """
    Create AppState from the provided settings.

    Raises DecodeFailure if the jobs file is corrupt; nothing is loaded then.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = JobStore.load(settings.jobs_file, resolution=settings.resolution)
    return AppState(
        settings=settings,
        store=store,
        prompter=prompter if prompter is not None else ConsolePrompter(),
    )


def save_store(state: AppState) -> bool:
    """Rewrite the jobs file if (and only if) the store was modified."""
    if not state.store.modified:
        return False
    saved = state.store.save()
    logger.info("Saved jobs to %s", state.store.path)
    return saved
