"""
Device-scoped storage of session buffers, event histories and the registry.

DeviceStore wraps one AsyncSession. Every read and write goes through
:meth:`DeviceStore.transaction`, which commits on success, rolls back on
any exception and turns SQLAlchemy failures into StorageError, so a
buffer clear and the event append that goes with it either both land or
neither does.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pumpwatch.db.models import BufferedSample, Device, RunEventRecord
from pumpwatch.errors import StorageError
from pumpwatch.models import RunEvent, Sample

logger = logging.getLogger(__name__)


def _row_to_sample(row: BufferedSample) -> Sample:
    return Sample(timestamp=row.timestamp, timezone=row.timezone, value=row.value)


def _row_to_event(row: RunEventRecord) -> RunEvent:
    return RunEvent(
        device_id=row.device_id,
        date=row.date,
        start_time=row.start_time,
        end_time=row.end_time,
        duration=row.duration,
        average_value=row.average_value,
        discharge_volume=row.discharge_volume,
        sample_count=row.sample_count,
    )


class DeviceStore:
    """Repository over the registry, session buffers and event histories.

    Args:
        db: Async SQLAlchemy session. The store never closes it.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["DeviceStore"]:
        """Run the enclosed block as one database transaction.

        Raises:
            StorageError: If the database rejects a read, write or the
                commit. The transaction has been rolled back.
        """
        try:
            async with self._db.begin():
                yield self
        except SQLAlchemyError as exc:
            logger.error("Storage transaction failed", exc_info=True)
            raise StorageError() from exc

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def is_registered(self, device_id: str, *, lock: bool = False) -> bool:
        """Return True if ``device_id`` is in the registry.

        Args:
            device_id: Identifier to look up.
            lock: Take a row lock on the registry entry for the rest of
                the transaction (``SELECT ... FOR UPDATE``). Dialects
                without row locks, such as SQLite, ignore it.
        """
        stmt = select(Device.device_id).where(Device.device_id == device_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_devices(self) -> list[str]:
        """Return registered device ids in registration order."""
        result = await self._db.execute(
            select(Device.device_id).order_by(Device.position, Device.device_id)
        )
        return list(result.scalars().all())

    async def register_devices(self, device_ids: Iterable[str]) -> list[str]:
        """Add device ids to the registry, skipping known ones.

        Returns:
            list[str]: The ids that were newly registered, in input order.
        """
        known = set(await self.list_devices())
        result = await self._db.execute(select(func.max(Device.position)))
        position = result.scalar_one_or_none()
        position = -1 if position is None else position

        added: list[str] = []
        for device_id in device_ids:
            if device_id in known:
                continue
            position += 1
            self._db.add(Device(device_id=device_id, position=position))
            known.add(device_id)
            added.append(device_id)
        return added

    # ------------------------------------------------------------------
    # Session buffer
    # ------------------------------------------------------------------

    async def load_buffer(self, device_id: str) -> list[Sample]:
        """Return the device's open-session buffer in arrival order."""
        result = await self._db.execute(
            select(BufferedSample)
            .where(BufferedSample.device_id == device_id)
            .order_by(BufferedSample.id)
        )
        return [_row_to_sample(row) for row in result.scalars().all()]

    async def append_sample(self, device_id: str, sample: Sample) -> None:
        """Append a sample to the end of the device's buffer."""
        self._db.add(
            BufferedSample(
                device_id=device_id,
                timestamp=sample.timestamp,
                date=sample.date,
                value=sample.value,
                timezone=sample.timezone,
            )
        )
        await self._db.flush()

    async def clear_buffer(self, device_id: str) -> int:
        """Delete every buffered sample of the device.

        Returns:
            int: Number of samples removed.
        """
        result = await self._db.execute(
            delete(BufferedSample).where(BufferedSample.device_id == device_id)
        )
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Event history
    # ------------------------------------------------------------------

    async def append_event(self, event: RunEvent) -> None:
        """Append a compiled event to its device's history."""
        self._db.add(RunEventRecord(**event.model_dump()))
        await self._db.flush()

    async def count_events(self, device_id: str) -> int:
        """Return the number of events in the device's history."""
        result = await self._db.execute(
            select(func.count())
            .select_from(RunEventRecord)
            .where(RunEventRecord.device_id == device_id)
        )
        return result.scalar_one()

    async def list_events(
        self,
        device_id: str,
        *,
        offset: int = 0,
        limit: int | None = None,
        newest_first: bool = True,
    ) -> list[RunEvent]:
        """Return a slice of the device's event history.

        Args:
            device_id: Device whose history to read.
            offset: Number of events to skip.
            limit: Maximum number of events, or None for all.
            newest_first: Order by most recent append first (dashboard
                order) instead of append order.
        """
        order = RunEventRecord.id.desc() if newest_first else RunEventRecord.id
        stmt = (
            select(RunEventRecord)
            .where(RunEventRecord.device_id == device_id)
            .order_by(order)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._db.execute(stmt)
        return [_row_to_event(row) for row in result.scalars().all()]
