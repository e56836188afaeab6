# src/jobber/core/errors.py

"""Error kinds raised by the parser, the job model and the store."""

from __future__ import annotations


class JobberError(Exception):
    """Base class for every recoverable jobber error."""


class ParseFailure(JobberError, ValueError):
    """A temporal expression or duration could not be recognized."""

    def __init__(self, text: str | None, what: str = "time") -> None:
        self.text = text
        super().__init__(f"Invalid {what}: {text!r}")


class InvalidInterval(JobberError, ValueError):
    """A start/end assignment would violate start < end."""

    def __init__(self, start, end, reason: str | None = None) -> None:
        self.start = start
        self.end = end
        super().__init__(reason or f"End time {end} is not after start time {start}")


class NoOpenJob(JobberError):
    def __init__(self) -> None:
        super().__init__("There is no open job!")


class OpenJobExists(JobberError):
    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(f"There is still an open job at position {position}!")


class DecodeFailure(JobberError, ValueError):
    """A persisted record line cannot be decoded. Fatal for the whole load."""

    def __init__(self, line_no: int, line: str, reason: str) -> None:
        self.line_no = line_no
        self.line = line
        super().__init__(f"Cannot decode line {line_no}: {reason} ({line!r})")


class InvalidPosition(JobberError, IndexError):
    def __init__(self, position: int, size: int) -> None:
        self.position = position
        self.size = size
        super().__init__(f"Invalid position {position} (valid: 1..{size})")
