"""
Redis cache for dashboard event-history pages.

Event histories are append-only, so a cached page only goes stale when a
new event is appended. Each device has a version counter; page keys
carry the version read before the database query, and every append bumps
it. A page computed from a read that raced an append is therefore stored
under a version nobody asks for again, instead of shadowing the new
history until its TTL runs out.

All operations are best-effort: connection failures are logged and never
propagate, and an empty REDIS_URL disables the cache entirely.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import json
import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)


def _version_key(device_id: str) -> str:
    return f"events:{device_id}:version"


def _page_key(device_id: str, version: int, offset: int, limit: int) -> str:
    return f"events:{device_id}:page:{version}:{offset}:{limit}"


async def get_redis(redis_url: str) -> redis.Redis:
    """Create and return an async Redis client for ``redis_url``.

    Returns:
        redis.Redis: Async Redis client.
    """
    return redis.from_url(redis_url)


async def get_cache_version(redis_url: str, device_id: str) -> int | None:
    """Return the device's cache version, or None when caching is unavailable."""
    if not redis_url:
        return None
    try:
        client = await get_redis(redis_url)
        try:
            raw = await client.get(_version_key(device_id))
        finally:
            await client.aclose()
    except Exception:
        logger.warning("Redis version read failed for device %s", device_id, exc_info=True)
        return None
    return int(raw) if raw is not None else 0


async def get_cached_page(
    redis_url: str,
    device_id: str,
    version: int,
    offset: int,
    limit: int,
) -> dict | None:
    """Return a cached event-history page, or None on miss or failure."""
    if not redis_url:
        return None
    key = _page_key(device_id, version, offset, limit)
    try:
        client = await get_redis(redis_url)
        try:
            cached = await client.get(key)
        finally:
            await client.aclose()
    except Exception:
        logger.warning("Redis read failed for key %s", key, exc_info=True)
        return None
    if cached is None:
        return None
    return json.loads(cached)


async def cache_page(
    redis_url: str,
    device_id: str,
    version: int,
    offset: int,
    limit: int,
    page: dict,
    ttl_s: int,
) -> None:
    """Store an event-history page under ``version`` with a TTL (best-effort)."""
    if not redis_url:
        return
    key = _page_key(device_id, version, offset, limit)
    try:
        client = await get_redis(redis_url)
        try:
            await client.set(key, json.dumps(page), ex=ttl_s)
        finally:
            await client.aclose()
    except Exception:
        logger.warning("Redis write failed for key %s", key, exc_info=True)


async def invalidate_device_cache(redis_url: str, device_id: str) -> None:
    """Bump the device's cache version and drop its cached pages.

    Best-effort operation: if Redis is unavailable or the delete fails,
    the error is logged but not raised, so an ingest that already
    committed is never reported as failed because of the cache.
    """
    if not redis_url:
        return
    try:
        client = await get_redis(redis_url)
        try:
            await client.incr(_version_key(device_id))
            keys = [
                key async for key in client.scan_iter(match=f"events:{device_id}:page:*")
            ]
            if keys:
                await client.delete(*keys)
        finally:
            await client.aclose()
    except Exception:
        logger.warning(
            "Failed to invalidate cache for device %s",
            device_id,
            exc_info=True,
        )
