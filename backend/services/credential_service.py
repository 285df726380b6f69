"""Per-tenant integration credential lookup."""

from typing import Any, Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.constants import IntegrationType
from db.models.integration import WorkspaceIntegration

logger = structlog.get_logger(__name__)


class CredentialStore(Protocol):
    """Anything that can hand out a tenant's connector credentials."""

    async def get_integration_credentials(
        self, tenant_id: str, integration_type: IntegrationType
    ) -> Optional[dict[str, Any]]:
        """Return the integration config, or None when missing or disabled."""


class DatabaseCredentialStore:
    """CredentialStore backed by the workspace_integrations table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = None):
        if session_factory is None:
            from db.database import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self.session_factory = session_factory

    async def get_integration_credentials(
        self, tenant_id: str, integration_type: IntegrationType
    ) -> Optional[dict[str, Any]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WorkspaceIntegration).where(
                    WorkspaceIntegration.tenant_id == tenant_id,
                    WorkspaceIntegration.type == IntegrationType(integration_type).value,
                )
            )
            integration = result.scalar_one_or_none()

        if integration is None or not integration.enabled:
            logger.debug(
                "Integration unavailable",
                tenant_id=tenant_id,
                integration_type=IntegrationType(integration_type).value,
            )
            return None
        return dict(integration.config or {})
