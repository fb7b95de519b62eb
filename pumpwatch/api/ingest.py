"""
GET /v1/ping endpoint: one telemetry ping from a pump controller.

Controllers send ``current``, ``timestamp``, ``timezone`` and ``deviceId``
as query parameters and read back a short plain-text message. The session
the ping landed in is reported in the ``X-Session-Status`` header; on
failure the ``X-Error-Code`` header carries the machine-readable code.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import html
import logging
import re
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from pumpwatch.api.deps import AppSettings, Locks, Store
from pumpwatch.errors import MissingParameterError, PumpwatchError
from pumpwatch.services.ingestion import build_sample, ingest_sample

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["ingest"])

_TAG_RE = re.compile(r"<[^>]*>")

STATUS_BY_CODE: dict[str, int] = {
    "parameter-missing": 400,
    "parameter-invalid": 400,
    "timestamp-format-invalid": 400,
    "timezone-invalid": 400,
    "device-unregistered": 404,
    "storage-write-failure": 503,
}


def sanitize(value: str) -> str:
    """Trim, strip markup tags and HTML-escape a raw query parameter."""
    return html.escape(_TAG_RE.sub("", value.strip()), quote=True)


def error_response(exc: PumpwatchError) -> PlainTextResponse:
    """Render a PumpwatchError as the plain-text reply devices expect."""
    return PlainTextResponse(
        f"Error: {exc.message}",
        status_code=STATUS_BY_CODE.get(exc.code, 400),
        headers={"X-Error-Code": exc.code},
    )


@router.get("/ping", response_class=PlainTextResponse)
async def ping(
    store: Store,
    settings: AppSettings,
    locks: Locks,
    current: Annotated[str, Query()] = "",
    timestamp: Annotated[str, Query()] = "",
    timezone: Annotated[str, Query()] = "",
    device_id: Annotated[str, Query(alias="deviceId")] = "",
) -> PlainTextResponse:
    """Store one ping and advance the device's session.

    Returns:
        PlainTextResponse: ``Ping saved successfully.`` (200), or
        ``Error: ...`` with 400 (bad parameters), 404 (unregistered
        device) or 503 (storage failure).
    """
    current = sanitize(current)
    timestamp = sanitize(timestamp)
    timezone = sanitize(timezone)
    device_id = sanitize(device_id)

    try:
        if not device_id:
            raise MissingParameterError("deviceId")
        sample = build_sample(current, timestamp, timezone)
        result = await ingest_sample(store, locks, device_id, sample, settings)
    except PumpwatchError as exc:
        logger.info("Ping rejected for device %r: %s", device_id, exc.code)
        return error_response(exc)

    message = (
        "Ping saved successfully." if result.accepted else "Ping already recorded."
    )
    return PlainTextResponse(message, headers={"X-Session-Status": result.status})
