# src/jobber/cli/console_prompt.py

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ConsolePrompter:
    """Prompter reading answers from stdin. EOF / Ctrl+C count as "no"."""

    def confirm(self, question: str) -> bool:
        try:
            answer = input(f"{question} (y/N) ")
        except (EOFError, KeyboardInterrupt):
            print()
            logger.debug("Confirmation aborted: %s", question)
            return False
        return answer.strip().lower() in ("y", "yes")

    def ask_time(self, question: str) -> str | None:
        try:
            answer = input(f"{question} ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return None
        return answer or None

    def ask_message(self, question: str) -> str:
        """Multi-line input, finished by an empty line."""
        print(question)
        lines: list[str] = []
        while True:
            try:
                line = input()
            except (EOFError, KeyboardInterrupt):
                break
            if not line:
                break
            lines.append(line)
        return "\n".join(lines).strip()
