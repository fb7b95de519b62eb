"""
Gap evaluation between a session's last ping and a reference instant.

Ingestion compares the last ping against the incoming ping's own
timestamp; the dashboard compares it against wall-clock now. Both go
through :func:`evaluate_gap` so "online" and "session closed" can never
disagree about the same gap.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pumpwatch.errors import TimestampFormatError, TimezoneError
from pumpwatch.models import TIMESTAMP_FORMAT, Sample

_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


@dataclass(frozen=True)
class GapResult:
    """Outcome of a gap evaluation.

    Attributes:
        gap_seconds: ``reference - last`` in seconds. Negative when the
            reference precedes the last ping.
        exceeded: True when the gap is strictly greater than the timeout.
    """

    gap_seconds: float
    exceeded: bool


def parse_timestamp(value: str) -> datetime:
    """Parse a civil ``YYYY-MM-DD HH:MM:SS`` timestamp into a naive datetime.

    Raises:
        TimestampFormatError: If the value does not match the fixed format
            or names an impossible date/time.
    """
    if not _TIMESTAMP_RE.match(value):
        raise TimestampFormatError(value)
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        raise TimestampFormatError(value) from None


def resolve_zone(name: str) -> ZoneInfo:
    """Look up an IANA zone by name.

    Raises:
        TimezoneError: If the name is empty or not a known zone.
    """
    if not name:
        raise TimezoneError(name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise TimezoneError(name) from None


def sample_instant(sample: Sample) -> datetime:
    """Return the aware instant of a sample, interpreted in its own zone.

    Raises:
        TimestampFormatError: If the stored timestamp is malformed.
        TimezoneError: If the stored zone name is unknown.
    """
    naive = parse_timestamp(sample.timestamp)
    return naive.replace(tzinfo=resolve_zone(sample.timezone))


def evaluate_gap(last: Sample, reference: datetime, timeout_s: float) -> GapResult:
    """Measure the gap between the last ping of a session and a reference.

    Both instants are normalised to UTC before subtracting, so a DST
    transition between them is counted in elapsed seconds rather than
    wall-clock seconds.

    Args:
        last: Most recent sample of the open session.
        reference: Aware datetime to measure against.
        timeout_s: Session timeout in seconds.

    Returns:
        GapResult: Gap in seconds and whether it exceeds the timeout.

    Raises:
        TimezoneError: If the last sample's zone cannot be resolved. The
            caller decides how to treat the indeterminate gap.
        ValueError: If ``reference`` is naive.
    """
    if reference.tzinfo is None:
        raise ValueError("reference must be timezone-aware")
    last_instant = sample_instant(last)
    gap_seconds = elapsed_seconds(last_instant, reference)
    return GapResult(gap_seconds=gap_seconds, exceeded=gap_seconds > timeout_s)


def elapsed_seconds(start: datetime, end: datetime) -> float:
    """Return ``end - start`` in real elapsed seconds.

    Aware datetimes sharing a tzinfo subtract as wall-clock values, so
    both are moved to UTC first.
    """
    return (end.astimezone(UTC) - start.astimezone(UTC)).total_seconds()
