"""
Dashboard endpoints: device list and per-device status with run history.

GET /v1/dashboard returns data, not HTML. Unless ``read_only=true`` is
passed, viewing a device that has gone silent for longer than the session
timeout closes its session and records the run.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query

from pumpwatch.api.deps import AppSettings, Locks, Store
from pumpwatch.errors import StorageError, UnregisteredDeviceError
from pumpwatch.services.dashboard import DashboardView, build_dashboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["dashboard"])


@router.get("/devices")
async def devices(store: Store) -> dict[str, list[str]]:
    """Return registered device ids in registration order.

    Raises:
        HTTPException: 503 if the registry could not be read.
    """
    try:
        async with store.transaction():
            device_ids = await store.list_devices()
    except StorageError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from None
    return {"devices": device_ids}


@router.get("/dashboard", response_model=DashboardView)
async def dashboard(
    store: Store,
    settings: AppSettings,
    locks: Locks,
    device: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1, le=1000)] = None,
    read_only: Annotated[bool, Query()] = False,
) -> DashboardView:
    """Return status, live session snapshot and run history for a device.

    Args:
        store: Device store for this request.
        settings: Service settings.
        locks: Per-device lock registry.
        device: Device to show; defaults to the first registered device.
        page: 1-based page of the newest-first event history.
        page_size: Events per page; defaults to EVENT_PAGE_SIZE.
        read_only: Do not close an overdue session while viewing.

    Raises:
        HTTPException: 404 if the device is not registered, 503 if the
            registry could not be read.
    """
    try:
        return await build_dashboard(
            store,
            locks,
            settings,
            device=device,
            page=page,
            page_size=page_size,
            read_only=read_only,
        )
    except UnregisteredDeviceError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from None
    except StorageError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from None
