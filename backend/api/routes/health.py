"""Health check endpoints."""

import time
from typing import Any

from fastapi import APIRouter, Depends

from app.config import get_settings
from app.dependencies import get_bus
from triggers.event_bus import EventBus

router = APIRouter(prefix="/health", tags=["health"])

_start_time = time.monotonic()


@router.get("", response_model=dict[str, Any])
async def health(bus: EventBus = Depends(get_bus)) -> dict[str, Any]:
    """
    Liveness probe with event bus status.
    """
    settings = get_settings()
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "ok",
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "event_bus": {"running": bus.is_running, "pending": bus.pending},
    }
