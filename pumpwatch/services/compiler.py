"""
Session compiler: turns a closed session's samples into a RunEvent.

Pure and deterministic. The compiler trusts its input; deciding whether a
session is worth compiling (lone pings, zero-length runs) is the caller's
job, see :func:`close_session`.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from pumpwatch.models import RunEvent, Sample
from pumpwatch.services.gap import elapsed_seconds, sample_instant

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def round_half_up(value: float) -> float:
    """Round to 2 decimals, halves away from zero (2.125 -> 2.13).

    Works on the shortest decimal repr of the float, so a mean printed as
    2.125 rounds up even though its binary value is slightly below it.
    """
    return float(Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def compile_session(
    device_id: str,
    samples: Sequence[Sample],
    discharge_coefficient: float,
) -> RunEvent:
    """Compile an ordered, non-empty run of samples into a RunEvent.

    Args:
        device_id: Controller the samples belong to.
        samples: Session samples in arrival order.
        discharge_coefficient: Litres pumped per second of runtime.

    Returns:
        RunEvent: Summary with start/end taken from the first and last
        sample, the mean current and the estimated discharge volume.

    Raises:
        ValueError: If ``samples`` is empty.
    """
    if not samples:
        raise ValueError("cannot compile an empty session")

    first = samples[0]
    last = samples[-1]
    duration = int(elapsed_seconds(sample_instant(first), sample_instant(last)))
    average = sum(sample.value for sample in samples) / len(samples)

    return RunEvent(
        device_id=device_id,
        date=first.date,
        start_time=first.timestamp,
        end_time=last.timestamp,
        duration=duration,
        average_value=round_half_up(average),
        discharge_volume=round_half_up(duration * discharge_coefficient),
        sample_count=len(samples),
    )


def close_session(
    device_id: str,
    samples: Sequence[Sample],
    *,
    discharge_coefficient: float,
    discard_zero_duration: bool = False,
) -> RunEvent | None:
    """Decide what an overdue session becomes when it is closed.

    A lone sample never yields an event. With ``discard_zero_duration``
    set, runs whose first and last ping share an instant (or run
    backwards) are dropped as well.

    Returns:
        RunEvent | None: The event to append, or None when the buffered
        samples are to be discarded.
    """
    if len(samples) < 2:
        logger.info(
            "Discarding lone sample for device %s (no duration to compile)",
            device_id,
        )
        return None

    event = compile_session(device_id, samples, discharge_coefficient)
    if discard_zero_duration and event.duration <= 0:
        logger.info(
            "Discarding %d-sample session for device %s with duration %ds",
            event.sample_count,
            device_id,
            event.duration,
        )
        return None
    return event
