# src/jobber/core/state.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..config import Settings
from ..jobs.job_store import JobStore
from ..temporal.time_parser import current_time
from .ports import Prompter


@dataclass
class AppState:
    settings: Settings
    store: JobStore
    prompter: Prompter

    # Injectable clock; every "now" of one command comes from here.
    clock: Callable[[], datetime] = field(default=current_time)

    def now(self) -> datetime:
        return self.clock()
