"""
Overdue-session sweep.

Sessions normally close lazily, on the next ping or dashboard view. The
sweep closes every overdue session on a timer instead, so a pump that
stops for good still gets its last run recorded. Off by default
(SWEEP_INTERVAL_S=0).

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.errors import PumpwatchError
from pumpwatch.services.locks import DeviceLocks
from pumpwatch.services.status import current_status

logger = logging.getLogger(__name__)


async def sweep_overdue_sessions(
    session_factory: async_sessionmaker[AsyncSession],
    locks: DeviceLocks,
    settings: Settings,
    now: datetime | None = None,
) -> int:
    """Close the overdue session of every registered device.

    Each device is evaluated in its own session and transaction; a
    failure on one device is logged and the sweep moves on.

    Returns:
        int: Number of events compiled.
    """
    now = now or datetime.now(tz=UTC)
    async with session_factory() as db:
        store = DeviceStore(db)
        async with store.transaction():
            devices = await store.list_devices()

    compiled = 0
    for device_id in devices:
        async with session_factory() as db:
            try:
                result = await current_status(
                    DeviceStore(db), locks, device_id, settings, now
                )
            except PumpwatchError:
                logger.warning("Sweep skipped device %s", device_id, exc_info=True)
                continue
        if result.closed_event is not None:
            compiled += 1

    logger.info("Sweep checked %d device(s), compiled %d event(s)", len(devices), compiled)
    return compiled


async def run_sweep_loop(
    *,
    session_factory: async_sessionmaker[AsyncSession],
    locks: DeviceLocks,
    settings: Settings,
    shutdown_event: asyncio.Event,
) -> None:
    """Sweep every SWEEP_INTERVAL_S seconds until shutdown_event is set.

    An exception in one iteration is logged and does not stop the loop.
    """
    interval = settings.sweep_interval_s
    logger.info("Sweep loop started (interval=%ss)", interval)
    while not shutdown_event.is_set():
        try:
            await sweep_overdue_sessions(session_factory, locks, settings)
        except Exception:
            logger.error("Sweep cycle error", exc_info=True)
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
    logger.info("Sweep loop stopped")
