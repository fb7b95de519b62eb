"""
Dashboard view assembly.

Builds the data the dashboard renders for one device: registry, live
status, the open session's snapshot and a newest-first page of the
event history. Viewing a device closes its overdue session unless the
caller asks for a read-only view.

A device whose state cannot be read degrades to ``unknown`` status and
an empty history page instead of failing the whole view.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import logging
from datetime import datetime

from pydantic import BaseModel

from pumpwatch.cache.redis_client import cache_page, get_cache_version, get_cached_page
from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.errors import StorageError, UnregisteredDeviceError
from pumpwatch.models import RunEvent
from pumpwatch.services.locks import DeviceLocks
from pumpwatch.services.status import (
    NO_DATA,
    ONLINE,
    UNKNOWN,
    StatusResult,
    current_status,
    peek_status,
)

logger = logging.getLogger(__name__)


class LiveSnapshot(BaseModel):
    """First and latest ping of the session that is still running."""

    start_date: str
    start_time: str
    latest_date: str
    latest_time: str
    latest_value: float
    sample_count: int


class EventPage(BaseModel):
    """One newest-first page of a device's event history."""

    page: int
    page_size: int
    total: int
    events: list[RunEvent]


class DashboardView(BaseModel):
    """Everything the dashboard shows for the selected device."""

    device: str | None
    devices: list[str]
    status: str
    gap_seconds: float | None = None
    live: LiveSnapshot | None = None
    closed_event: RunEvent | None = None
    history: EventPage


def _snapshot(result: StatusResult) -> LiveSnapshot | None:
    if result.status != ONLINE or not result.buffer:
        return None
    first = result.buffer[0]
    last = result.buffer[-1]
    return LiveSnapshot(
        start_date=first.date,
        start_time=first.timestamp,
        latest_date=last.date,
        latest_time=last.timestamp,
        latest_value=last.value,
        sample_count=len(result.buffer),
    )


async def load_event_page(
    store: DeviceStore,
    device_id: str,
    settings: Settings,
    page: int,
    page_size: int,
) -> EventPage:
    """Return one newest-first history page, using the Redis cache if set.

    The cache version is read before the database so a page that raced
    an append is stored under the superseded version.

    Raises:
        StorageError: If the history could not be read.
    """
    offset = (page - 1) * page_size
    version = await get_cache_version(settings.redis_url, device_id)
    if version is not None:
        cached = await get_cached_page(
            settings.redis_url, device_id, version, offset, page_size
        )
        if cached is not None:
            return EventPage.model_validate(cached)

    async with store.transaction():
        total = await store.count_events(device_id)
        events = await store.list_events(device_id, offset=offset, limit=page_size)
    result = EventPage(page=page, page_size=page_size, total=total, events=events)
    if version is None:
        return result
    await cache_page(
        settings.redis_url,
        device_id,
        version,
        offset,
        page_size,
        result.model_dump(mode="json"),
        settings.cache_ttl_s,
    )
    return result


async def build_dashboard(
    store: DeviceStore,
    locks: DeviceLocks,
    settings: Settings,
    *,
    device: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    read_only: bool = False,
    now: datetime | None = None,
) -> DashboardView:
    """Assemble the dashboard view for one device.

    Args:
        store: Storage for the registry, buffers and histories.
        locks: Per-device lock registry shared with ingestion.
        settings: Service settings.
        device: Device to show. Defaults to the first registered device.
        page: 1-based history page number.
        page_size: Events per page. Defaults to EVENT_PAGE_SIZE.
        read_only: Evaluate status without closing overdue sessions.
        now: Reference instant for the status. Defaults to now.

    Raises:
        UnregisteredDeviceError: If ``device`` is not registered.
        StorageError: If the registry itself could not be read.
    """
    page_size = page_size or settings.event_page_size

    async with store.transaction():
        devices = await store.list_devices()

    empty_page = EventPage(page=page, page_size=page_size, total=0, events=[])
    if device is None:
        if not devices:
            return DashboardView(
                device=None, devices=[], status=NO_DATA, history=empty_page
            )
        device = devices[0]
    elif device not in devices:
        raise UnregisteredDeviceError(device)

    try:
        if read_only:
            result = await peek_status(store, device, settings, now)
        else:
            result = await current_status(store, locks, device, settings, now)
    except StorageError:
        logger.warning("Status for device %s unreadable, showing unknown", device)
        result = StatusResult(status=UNKNOWN)

    try:
        history = await load_event_page(store, device, settings, page, page_size)
    except StorageError:
        logger.warning("Event history for device %s unreadable", device)
        history = empty_page

    return DashboardView(
        device=device,
        devices=devices,
        status=result.status,
        gap_seconds=result.gap_seconds,
        live=_snapshot(result),
        closed_event=result.closed_event,
        history=history,
    )
