from __future__ import annotations

import asyncio
import os
from datetime import UTC, datetime
from pathlib import Path

import redis.asyncio as aioredis
import structlog
from fastapi import APIRouter
from homeaudit.core.config import get_settings
from homeaudit.infrastructure.db.session import get_session_factory
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(tags=["Observability"])
logger = structlog.get_logger()


def _error(exc: Exception) -> dict:
    return {"status": "error", "message": str(exc)[:100]}


async def check_database() -> dict:
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        return _error(exc)
    return {"status": "ok"}


async def check_redis() -> dict:
    """Reminder jobs are queued through Redis; bookings still work without it."""
    client = aioredis.from_url(get_settings().redis_url)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        return _error(exc)
    finally:
        await client.aclose()
    return {"status": "ok"}


async def check_report_archive() -> dict:
    directory = Path(get_settings().report_archive_dir)

    def probe() -> bool:
        directory.mkdir(parents=True, exist_ok=True)
        return os.access(directory, os.W_OK)

    try:
        writable = await asyncio.to_thread(probe)
    except OSError as exc:
        return _error(exc)
    if not writable:
        return {"status": "error", "message": f"{directory} is not writable"}
    return {"status": "ok"}


@router.get("/health", summary="Service health probe")
async def health_check() -> dict:
    """Report service metadata plus database, Redis and report-archive status."""
    settings = get_settings()

    database, redis_status, archive = await asyncio.gather(
        check_database(), check_redis(), check_report_archive()
    )
    datastores = {"database": database, "redis": redis_status, "report_archive": archive}
    healthy = all(check.get("status") == "ok" for check in datastores.values())

    payload = {
        "service": settings.app_name,
        "version": settings.version,
        "status": "ok" if healthy else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "datastores": datastores,
    }
    await logger.ainfo("health_probe", **payload)
    return payload
