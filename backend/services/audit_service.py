"""Audit trail writer for execution lifecycle events."""

from typing import Any, Optional, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.models.audit_log import AuditLog

logger = structlog.get_logger(__name__)


class AuditSink(Protocol):
    async def log(
        self,
        tenant_id: str,
        action: str,
        resource: str,
        resource_id: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Record one audit entry. Must not raise."""


class DatabaseAuditSink:
    """AuditSink writing rows to audit_logs.

    Audit failures are logged and swallowed so they never change the
    outcome of the execution being audited.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = None):
        if session_factory is None:
            from db.database import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self.session_factory = session_factory

    async def log(
        self,
        tenant_id: str,
        action: str,
        resource: str,
        resource_id: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        try:
            async with self.session_factory() as session:
                session.add(
                    AuditLog(
                        tenant_id=tenant_id,
                        action=str(getattr(action, "value", action)),
                        resource=resource,
                        resource_id=resource_id,
                        metadata_=metadata,
                    )
                )
                await session.commit()
        except Exception as e:
            logger.warning(
                "Audit write failed",
                action=str(getattr(action, "value", action)),
                resource_id=resource_id,
                error=str(e),
            )
