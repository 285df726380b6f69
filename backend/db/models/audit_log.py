"""AuditLog model."""

from typing import Optional

from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from db.base import BaseModel


class AuditLog(BaseModel):
    """AuditLog model for tracking workflow engine activity.

    Attributes:
        tenant_id: Workspace the action belongs to
        action: Action performed (e.g. workflow.execution.start)
        resource: Type of resource affected
        resource_id: ID of the resource affected
        metadata_: JSON details
    """

    __tablename__ = "audit_logs"

    tenant_id: Mapped[str] = mapped_column(nullable=False, index=True)
    action: Mapped[str] = mapped_column(nullable=False, index=True)
    resource: Mapped[str] = mapped_column(nullable=False, index=True)
    resource_id: Mapped[str] = mapped_column(nullable=False, index=True)
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
