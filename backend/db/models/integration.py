"""Per-tenant integration credentials."""

from typing import Optional

from sqlalchemy import JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import BaseModel


class WorkspaceIntegration(BaseModel):
    """Connector credentials for one tenant and provider.

    Config is stored already decrypted from the engine's point of view;
    encryption at rest belongs to the integrations service.
    """

    __tablename__ = "workspace_integrations"
    __table_args__ = (UniqueConstraint("tenant_id", "type", name="uq_integration_tenant_type"),)

    tenant_id: Mapped[str] = mapped_column(nullable=False, index=True)
    type: Mapped[str] = mapped_column(nullable=False)
    enabled: Mapped[bool] = mapped_column(default=True)
    config: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
