"""
Ingestion engine: applies one ping to a device's open session.

Each call loads the device's buffer, compares the incoming ping with the
last buffered one, closes the session when the silence between them
exceeds the session timeout, and appends the ping. The whole cycle runs
under the device's lock and inside one transaction, so concurrent pings
for the same device cannot both close the same session.

Session boundaries are decided against the incoming ping's own timestamp,
never against wall-clock time, so replaying the same pings always yields
the same events.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import logging
import math
import re
from dataclasses import dataclass

from pumpwatch.cache.redis_client import invalidate_device_cache
from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.errors import (
    MissingParameterError,
    UnregisteredDeviceError,
    ValidationError,
)
from pumpwatch.models import RunEvent, Sample
from pumpwatch.services.compiler import close_session
from pumpwatch.services.gap import evaluate_gap, parse_timestamp, resolve_zone, sample_instant
from pumpwatch.services.locks import DeviceLocks

logger = logging.getLogger(__name__)

NEW_SESSION = "new session"
CONTINUING_SESSION = "continuing session"
DUPLICATE_SAMPLE = "duplicate sample"

# Plain decimal numerals, optionally with an exponent. Rejects Python-only
# spellings such as "1_0", "inf" and "nan".
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one ping.

    Attributes:
        accepted: False only when the ping was recognised as a replay and
            dropped.
        status: ``new session``, ``continuing session`` or
            ``duplicate sample``.
        event: Event compiled from the session this ping closed, if any.
        discarded: Buffered samples dropped without compiling (a lone
            ping, or a zero-length run under the discard policy).
    """

    accepted: bool
    status: str
    event: RunEvent | None = None
    discarded: int = 0


def build_sample(current: str, timestamp: str, timezone: str) -> Sample:
    """Validate raw ping parameters and build a Sample.

    Pure: no state is read, so a rejected ping can never mutate anything.

    Args:
        current: Current draw in amperes, as sent by the device.
        timestamp: Civil timestamp, ``YYYY-MM-DD HH:MM:SS``.
        timezone: IANA zone name of the timestamp.

    Raises:
        MissingParameterError: If any parameter is empty.
        TimestampFormatError: If the timestamp does not parse.
        ValidationError: If current is not a finite non-negative number.
        TimezoneError: If the zone name is unknown.
    """
    for field, value in (
        ("current", current),
        ("timestamp", timestamp),
        ("timezone", timezone),
    ):
        if not value:
            raise MissingParameterError(field)

    parse_timestamp(timestamp)

    if not _NUMBER_RE.fullmatch(current):
        raise ValidationError("current", "'current' must be a non-negative number.")
    value = float(current)
    if not math.isfinite(value) or value < 0:
        raise ValidationError("current", "'current' must be a non-negative number.")

    resolve_zone(timezone)
    return Sample(timestamp=timestamp, timezone=timezone, value=value)


async def ingest_sample(
    store: DeviceStore,
    locks: DeviceLocks,
    device_id: str,
    sample: Sample,
    settings: Settings,
) -> IngestResult:
    """Apply one validated ping to the device's open session.

    Args:
        store: Storage for the registry, buffers and histories.
        locks: Per-device lock registry.
        device_id: Controller that sent the ping.
        sample: Validated ping, see :func:`build_sample`.
        settings: Session timeout, discharge coefficient and policies.

    Returns:
        IngestResult: Whether the ping was stored and which session it
        belongs to.

    Raises:
        UnregisteredDeviceError: If the device is not in the registry.
        TimezoneError: If the last buffered ping carries an unusable zone.
            Nothing is written in that case.
        StorageError: If the transaction failed; nothing was written.
    """
    event: RunEvent | None = None
    discarded = 0

    async with locks.hold(device_id), store.transaction():
        if not await store.is_registered(device_id, lock=True):
            raise UnregisteredDeviceError(device_id)

        buffer = await store.load_buffer(device_id)
        status = NEW_SESSION if not buffer else CONTINUING_SESSION

        if buffer and settings.dedup_samples and any(
            buffered.timestamp == sample.timestamp for buffered in buffer
        ):
            logger.info(
                "Ignoring replayed ping for device %s at %s",
                device_id,
                sample.timestamp,
            )
            return IngestResult(accepted=False, status=DUPLICATE_SAMPLE)

        if buffer:
            gap = evaluate_gap(
                buffer[-1], sample_instant(sample), settings.session_timeout_s
            )
            if gap.exceeded:
                event = close_session(
                    device_id,
                    buffer,
                    discharge_coefficient=settings.discharge_coefficient,
                    discard_zero_duration=settings.discard_zero_duration,
                )
                if event is not None:
                    await store.append_event(event)
                else:
                    discarded = len(buffer)
                await store.clear_buffer(device_id)
                status = NEW_SESSION
                logger.info(
                    "Session closed for device %s after %.0fs gap "
                    "(event=%s, discarded=%d)",
                    device_id,
                    gap.gap_seconds,
                    event is not None,
                    discarded,
                )

        await store.append_sample(device_id, sample)

    logger.info(
        "Ping stored for device %s at %s (%s)",
        device_id,
        sample.timestamp,
        status,
    )
    if event is not None:
        await invalidate_device_cache(settings.redis_url, device_id)

    return IngestResult(accepted=True, status=status, event=event, discarded=discarded)
