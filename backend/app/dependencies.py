"""FastAPI dependency injection functions."""

from fastapi import Header, HTTPException, status

from triggers.event_bus import EventBus, get_event_bus
from triggers.router import EventRouter, get_event_router


async def get_tenant_id(x_organization_id: str = Header(default="")) -> str:
    """
    Resolve the calling tenant.

    Authentication happens upstream; the gateway forwards the caller's
    workspace in the X-Organization-Id header.

    Raises:
        HTTPException: If the header is missing
    """
    tenant_id = x_organization_id.strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Organization-Id header",
        )
    return tenant_id


def get_router() -> EventRouter:
    return get_event_router()


def get_bus() -> EventBus:
    return get_event_bus()
