"""Database models for the workflow engine.

This module imports all models to ensure they are registered
with SQLAlchemy's declarative base.
"""

from db.models.workflow import Workflow, WorkflowNode, WorkflowEdge
from db.models.execution import WorkflowExecution
from db.models.integration import WorkspaceIntegration
from db.models.audit_log import AuditLog

__all__ = [
    "Workflow",
    "WorkflowNode",
    "WorkflowEdge",
    "WorkflowExecution",
    "WorkspaceIntegration",
    "AuditLog",
]
