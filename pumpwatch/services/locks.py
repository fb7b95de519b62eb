"""
Per-device exclusive sections.

Ingestion and force-closing status checks are read-modify-write cycles
over one device's buffer and history. DeviceLocks serialises them per
device inside this process; the registry row lock taken by
``DeviceStore.is_registered(lock=True)`` covers other processes sharing
a PostgreSQL database. Different devices never wait on each other.

A device's lock only exists while some task holds or waits for it, so
pings for unknown device ids leave nothing behind.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class DeviceLocks:
    """Registry of one asyncio.Lock per device id in use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def in_use(self) -> int:
        """Return how many devices have their lock held or awaited."""
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, device_id: str) -> AsyncIterator[None]:
        """Hold the device's lock for the duration of the block."""
        lock = self._locks.get(device_id)
        if lock is None:
            lock = self._locks[device_id] = asyncio.Lock()
        self._holders[device_id] = self._holders.get(device_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[device_id] -= 1
            if not self._holders[device_id]:
                del self._holders[device_id]
                del self._locks[device_id]
