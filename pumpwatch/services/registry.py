"""
Device registry seeding from a JSON devices file.

The devices file is a JSON list of device id strings, e.g.
``["01xd02m25", "01xd02m26"]``. Seeding only adds ids; a device removed
from the file stays registered.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import json
import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pumpwatch.db.repository import DeviceStore

logger = logging.getLogger(__name__)


def load_devices_file(path: str | Path) -> list[str]:
    """Read device ids from a JSON list file.

    Blank and duplicate entries are dropped; order is preserved.

    Raises:
        RuntimeError: If the file is missing, not JSON, or not a list of
            strings.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Cannot read devices file {path}: {exc}") from exc

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise RuntimeError(f"Devices file {path} must contain a JSON list of strings")

    device_ids: list[str] = []
    for item in data:
        item = item.strip()
        if item and item not in device_ids:
            device_ids.append(item)
    return device_ids


async def register_devices(
    session_factory: async_sessionmaker[AsyncSession],
    device_ids: list[str],
) -> list[str]:
    """Register device ids, returning the ones that were new.

    Raises:
        StorageError: If the registry could not be written.
    """
    async with session_factory() as db:
        store = DeviceStore(db)
        async with store.transaction():
            added = await store.register_devices(device_ids)
    if added:
        logger.info("Registered %d device(s): %s", len(added), ", ".join(added))
    return added
