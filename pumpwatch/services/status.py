"""
Status evaluator: is a device online, offline, or silent?

A device is online while the gap between its last buffered ping and now
is at most the session timeout. :func:`current_status` is NOT read-only:
when it finds an overdue session it closes it exactly the way the next
ping would, so a run is recorded even if the pump never pings again.
:func:`peek_status` answers the same question without touching state.

If the last ping's zone cannot be resolved the status is ``unknown`` and
nothing is closed.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pumpwatch.cache.redis_client import invalidate_device_cache
from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.errors import UnregisteredDeviceError, ValidationError
from pumpwatch.models import RunEvent, Sample
from pumpwatch.services.compiler import close_session
from pumpwatch.services.gap import evaluate_gap
from pumpwatch.services.locks import DeviceLocks

logger = logging.getLogger(__name__)

ONLINE = "online"
OFFLINE = "offline"
NO_DATA = "no_data"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatusResult:
    """Status of one device at a reference instant.

    Attributes:
        status: ``online``, ``offline``, ``no_data`` or ``unknown``.
        gap_seconds: Seconds since the last ping, when determinable.
        buffer: Open-session samples after evaluation. Empty once an
            overdue session has been closed.
        closed_event: Event compiled by this evaluation, if any.
        closed: True when this evaluation closed an overdue session,
            whether or not that produced an event.
    """

    status: str
    gap_seconds: float | None = None
    buffer: list[Sample] = field(default_factory=list)
    closed_event: RunEvent | None = None
    closed: bool = False


def classify(
    buffer: list[Sample],
    now: datetime,
    timeout_s: float,
) -> tuple[str, float | None]:
    """Classify a buffer against ``now`` without side effects.

    Returns:
        tuple: ``(status, gap_seconds)``.
    """
    if not buffer:
        return NO_DATA, None
    try:
        gap = evaluate_gap(buffer[-1], now, timeout_s)
    except ValidationError:
        logger.warning(
            "Cannot evaluate gap for last ping %s (zone %r), status unknown",
            buffer[-1].timestamp,
            buffer[-1].timezone,
        )
        return UNKNOWN, None
    return (OFFLINE if gap.exceeded else ONLINE), gap.gap_seconds


async def peek_status(
    store: DeviceStore,
    device_id: str,
    settings: Settings,
    now: datetime | None = None,
) -> StatusResult:
    """Evaluate a device's status without closing overdue sessions.

    Raises:
        UnregisteredDeviceError: If the device is not in the registry.
        StorageError: If the buffer could not be read.
    """
    now = now or datetime.now(tz=UTC)
    async with store.transaction():
        if not await store.is_registered(device_id):
            raise UnregisteredDeviceError(device_id)
        buffer = await store.load_buffer(device_id)
    status, gap_seconds = classify(buffer, now, settings.session_timeout_s)
    return StatusResult(status=status, gap_seconds=gap_seconds, buffer=buffer)


async def current_status(
    store: DeviceStore,
    locks: DeviceLocks,
    device_id: str,
    settings: Settings,
    now: datetime | None = None,
) -> StatusResult:
    """Evaluate a device's status, closing its session if it is overdue.

    Side effect: an offline device's buffer is compiled into an event
    (or discarded, for a lone ping) and cleared, under the same lock and
    in the same kind of transaction as ingestion.

    Args:
        store: Storage for the registry, buffers and histories.
        locks: Per-device lock registry shared with ingestion.
        device_id: Device to evaluate.
        settings: Session timeout, discharge coefficient and policies.
        now: Reference instant (aware). Defaults to the current time.

    Raises:
        UnregisteredDeviceError: If the device is not in the registry.
        StorageError: If the transaction failed; nothing was written.
    """
    now = now or datetime.now(tz=UTC)
    event: RunEvent | None = None

    async with locks.hold(device_id), store.transaction():
        if not await store.is_registered(device_id, lock=True):
            raise UnregisteredDeviceError(device_id)
        buffer = await store.load_buffer(device_id)
        status, gap_seconds = classify(buffer, now, settings.session_timeout_s)

        if status != OFFLINE:
            return StatusResult(status=status, gap_seconds=gap_seconds, buffer=buffer)

        event = close_session(
            device_id,
            buffer,
            discharge_coefficient=settings.discharge_coefficient,
            discard_zero_duration=settings.discard_zero_duration,
        )
        if event is not None:
            await store.append_event(event)
        await store.clear_buffer(device_id)

    logger.info(
        "Closed overdue session for device %s after %.0fs of silence (event=%s)",
        device_id,
        gap_seconds,
        event is not None,
    )
    if event is not None:
        await invalidate_device_cache(settings.redis_url, device_id)
    return StatusResult(
        status=OFFLINE,
        gap_seconds=gap_seconds,
        closed_event=event,
        closed=True,
    )
