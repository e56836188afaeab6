# src/jobber/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the command layer.

Commands depend on Protocols instead of concrete terminal I/O, so the console
prompter can be swapped for a scripted one in tests.
"""

from typing import Protocol


class Prompter(Protocol):
    """Interactive decision points: confirmations, corrected times, messages."""

    def confirm(self, question: str) -> bool: ...

    def ask_time(self, question: str) -> str | None:
        """Return raw time text to be re-parsed, or None/"" to give up."""
        ...

    def ask_message(self, question: str) -> str: ...
