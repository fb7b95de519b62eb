"""
Tests for DeviceStore: registry, buffers, event histories and transactions.

CHANGELOG:
- 2026-10-18: Initial creation
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from pumpwatch.db.repository import DeviceStore
from pumpwatch.errors import StorageError
from pumpwatch.models import RunEvent
from tests.factories import DEVICE_ID, OTHER_DEVICE_ID, make_sample


def _event(start: str, end: str, device_id: str = DEVICE_ID) -> RunEvent:
    return RunEvent(
        device_id=device_id,
        date="2025-04-11",
        start_time=f"2025-04-11 {start}",
        end_time=f"2025-04-11 {end}",
        duration=30,
        average_value=2.0,
        discharge_volume=30.0,
        sample_count=2,
    )


class TestRegistry:
    """Devices are listed in registration order and registered once."""

    @pytest.mark.asyncio
    async def test_list_in_registration_order(self, store: DeviceStore) -> None:
        async with store.transaction():
            assert await store.list_devices() == [DEVICE_ID, OTHER_DEVICE_ID]

    @pytest.mark.asyncio
    async def test_register_skips_known_ids(self, store: DeviceStore) -> None:
        async with store.transaction():
            added = await store.register_devices(["D3", DEVICE_ID, "D0", "D3"])

        async with store.transaction():
            devices = await store.list_devices()

        assert added == ["D3", "D0"]
        assert devices == [DEVICE_ID, OTHER_DEVICE_ID, "D3", "D0"]

    @pytest.mark.asyncio
    async def test_is_registered(self, store: DeviceStore) -> None:
        async with store.transaction():
            assert await store.is_registered(DEVICE_ID)
            assert await store.is_registered(DEVICE_ID, lock=True)
            assert not await store.is_registered("X9")


class TestBuffer:
    """Buffers keep arrival order and are cleared per device."""

    @pytest.mark.asyncio
    async def test_arrival_order_kept(self, store: DeviceStore) -> None:
        samples = [make_sample("10:00:30"), make_sample("10:00:00", 1.5)]
        async with store.transaction():
            for sample in samples:
                await store.append_sample(DEVICE_ID, sample)

        async with store.transaction():
            assert await store.load_buffer(DEVICE_ID) == samples

    @pytest.mark.asyncio
    async def test_clear_only_touches_one_device(self, store: DeviceStore) -> None:
        async with store.transaction():
            await store.append_sample(DEVICE_ID, make_sample("10:00:00"))
            await store.append_sample(DEVICE_ID, make_sample("10:00:30"))
            await store.append_sample(OTHER_DEVICE_ID, make_sample("10:00:10"))

        async with store.transaction():
            removed = await store.clear_buffer(DEVICE_ID)

        async with store.transaction():
            assert removed == 2
            assert await store.load_buffer(DEVICE_ID) == []
            assert await store.load_buffer(OTHER_DEVICE_ID) == [make_sample("10:00:10")]


class TestEventHistory:
    """Histories are append-only and paged newest first."""

    @pytest.mark.asyncio
    async def test_ordering_and_paging(self, store: DeviceStore) -> None:
        events = [
            _event("10:00:00", "10:00:30"),
            _event("11:00:00", "11:00:30"),
            _event("12:00:00", "12:00:30"),
        ]
        async with store.transaction():
            for event in events:
                await store.append_event(event)
            await store.append_event(_event("13:00:00", "13:00:30", OTHER_DEVICE_ID))

        async with store.transaction():
            assert await store.count_events(DEVICE_ID) == 3
            assert await store.list_events(DEVICE_ID, newest_first=False) == events
            assert await store.list_events(DEVICE_ID, limit=2) == events[:0:-1]
            assert await store.list_events(DEVICE_ID, offset=2, limit=2) == events[:1]


class TestTransaction:
    """A failed transaction rolls back and surfaces as StorageError."""

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, store: DeviceStore) -> None:
        with patch.object(
            DeviceStore,
            "append_event",
            new=AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full"))),
        ):
            with pytest.raises(StorageError) as exc_info:
                async with store.transaction():
                    await store.clear_buffer(DEVICE_ID)
                    await store.append_sample(DEVICE_ID, make_sample("10:00:00"))
                    await store.append_event(_event("10:00:00", "10:00:30"))

        assert exc_info.value.message == "Failed to save data."
        async with store.transaction():
            assert await store.load_buffer(DEVICE_ID) == []
            assert await store.count_events(DEVICE_ID) == 0

    @pytest.mark.asyncio
    async def test_other_errors_propagate_unchanged(self, store: DeviceStore) -> None:
        with pytest.raises(KeyError):
            async with store.transaction():
                await store.append_sample(DEVICE_ID, make_sample("10:00:00"))
                raise KeyError("boom")

        async with store.transaction():
            assert await store.load_buffer(DEVICE_ID) == []
