"""Workflow definition models: workflows, their nodes and edges."""

from typing import Optional

from sqlalchemy import JSON, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import BaseModel


class Workflow(BaseModel):
    """A tenant-authored automation graph.

    Attributes:
        id: Unique identifier (UUID string)
        tenant_id: Owning workspace
        name: Workflow name
        description: Free-text description
        active: Whether events may trigger this workflow
    """

    __tablename__ = "workflows"

    tenant_id: Mapped[str] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(nullable=False, default="")
    active: Mapped[bool] = mapped_column(default=False, index=True)

    nodes: Mapped[list["WorkflowNode"]] = relationship(
        "WorkflowNode",
        back_populates="workflow",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="WorkflowNode.position",
    )
    edges: Mapped[list["WorkflowEdge"]] = relationship(
        "WorkflowEdge",
        back_populates="workflow",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="WorkflowEdge.position",
    )
    executions: Mapped[list["WorkflowExecution"]] = relationship(
        "WorkflowExecution",
        back_populates="workflow",
        cascade="all, delete-orphan",
        lazy="noload",
    )


class WorkflowNode(BaseModel):
    """One automation node.

    Attributes:
        node_id: Author-facing key, used for `{node_id}_output` variables
        type: NodeKind value
        label: Display label
        config: Kind-specific configuration
        trigger_event: TriggerEvent value (Trigger nodes only)
        position: Stored order within the workflow
    """

    __tablename__ = "workflow_nodes"

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    node_id: Mapped[str] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(nullable=False, index=True)
    label: Mapped[str] = mapped_column(nullable=False, default="")
    config: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    trigger_event: Mapped[Optional[str]] = mapped_column(nullable=True, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    workflow: Mapped["Workflow"] = relationship("Workflow", back_populates="nodes")


class WorkflowEdge(BaseModel):
    """A directed connection between two nodes.

    Attributes:
        edge_id: Author-facing key; may carry "true"/"false" branch text
        source_node_id / target_node_id: Row ids of the connected nodes
        source_handle: Optional handle label from the editor
        position: Stored order; outgoing edges are walked in this order
    """

    __tablename__ = "workflow_edges"

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    edge_id: Mapped[str] = mapped_column(nullable=False)
    source_node_id: Mapped[str] = mapped_column(
        ForeignKey("workflow_nodes.id", ondelete="CASCADE"), nullable=False
    )
    target_node_id: Mapped[str] = mapped_column(
        ForeignKey("workflow_nodes.id", ondelete="CASCADE"), nullable=False
    )
    source_handle: Mapped[Optional[str]] = mapped_column(nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    workflow: Mapped["Workflow"] = relationship("Workflow", back_populates="edges")
