# src/jobber/jobs/job_codec.py

"""
Line codec for the jobs file.

One job per line, four double-quoted fields separated by semicolons:

    "<start>";"<end or 0>";"<message>";"<tag,tag,...>"

Timestamps are ISO 8601 at minute resolution. Newlines in the message are
written as the two characters backslash-n. Nothing else is escaped, so a
message containing the field delimiter does not survive a round trip.
Lines with only three fields (older files) decode with no tags.
"""

from __future__ import annotations

from datetime import datetime

from ..core.errors import DecodeFailure, InvalidInterval
from .job_models import Job, parse_tags

FIELD_SEP = ";"
OPEN_END = "0"


def _quote(value: str) -> str:
    return f'"{value}"'


def _unquote(value: str) -> str:
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def format_timestamp(t: datetime) -> str:
    return t.isoformat(timespec="minutes")


def parse_timestamp(raw: str) -> datetime:
    """Parse a stored timestamp. Offsets (older files) are converted to local time."""
    t = datetime.fromisoformat(raw)
    if t.tzinfo is not None:
        t = t.astimezone().replace(tzinfo=None)
    return t.replace(second=0, microsecond=0)


def escape_message(message: str) -> str:
    return message.replace("\n", "\\n")


def unescape_message(raw: str) -> str:
    return raw.replace("\\n", "\n")


def encode_job(job: Job) -> str:
    fields = [
        format_timestamp(job.start),
        format_timestamp(job.end) if job.end is not None else OPEN_END,
        escape_message(job.message),
        ",".join(job.tags),
    ]
    return FIELD_SEP.join(_quote(f) for f in fields)


def decode_job(line: str, line_no: int = 0) -> Job:
    """Decode one record line. Raises DecodeFailure on any malformed field."""
    raw = line.rstrip("\r\n")
    fields = [_unquote(f) for f in raw.split(FIELD_SEP)]
    if len(fields) < 3:
        raise DecodeFailure(line_no, raw, f"expected at least 3 fields, got {len(fields)}")

    try:
        start = parse_timestamp(fields[0])
        end = None if fields[1] == OPEN_END else parse_timestamp(fields[1])
    except ValueError as e:
        raise DecodeFailure(line_no, raw, str(e)) from e

    tags = parse_tags(fields[3]) if len(fields) > 3 else []
    try:
        return Job(start=start, end=end, message=unescape_message(fields[2]), tags=tags)
    except InvalidInterval as e:
        raise DecodeFailure(line_no, raw, str(e)) from e
