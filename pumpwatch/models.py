"""
Pydantic models for pump telemetry samples and compiled run events.

A Sample is one ping as the device reported it: a civil timestamp, the
IANA zone that timestamp belongs to, and the instantaneous current draw.
A RunEvent is the frozen summary of one closed session.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Sample(BaseModel):
    """A single current reading from a pump controller.

    Attributes:
        timestamp: Civil timestamp, ``YYYY-MM-DD HH:MM:SS``.
        timezone: IANA zone name the civil timestamp is expressed in.
        value: Instantaneous current draw in amperes (non-negative).
    """

    model_config = ConfigDict(frozen=True)

    timestamp: str
    timezone: str
    value: float

    @property
    def date(self) -> str:
        """Civil date component of the timestamp."""
        return self.timestamp[:10]


class RunEvent(BaseModel):
    """Compiled summary of one pump run.

    Attributes:
        device_id: Controller the run belongs to.
        date: Civil date of the first sample.
        start_time: Civil timestamp of the first sample.
        end_time: Civil timestamp of the last sample.
        duration: ``end_time - start_time`` in seconds.
        average_value: Mean current over the run, 2 decimals.
        discharge_volume: ``duration * discharge coefficient``, 2 decimals.
        sample_count: Number of pings the run was compiled from.
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    date: str
    start_time: str
    end_time: str
    duration: int
    average_value: float
    discharge_volume: float
    sample_count: int
