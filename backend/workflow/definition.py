"""In-memory, read-only view of a workflow definition."""

from dataclasses import dataclass, field
from typing import Any, Optional

from core.constants import NodeKind


@dataclass(frozen=True)
class Node:
    """One automation node.

    `id` is the row id edges point at; `node_id` is the author-facing
    key used for `{node_id}_output` variables.
    """

    id: str
    node_id: str
    type: str
    label: str = ""
    config: Optional[dict[str, Any]] = None
    trigger_event: Optional[str] = None

    @property
    def kind(self) -> Optional[NodeKind]:
        """NodeKind for this node, or None when the type is unknown."""
        try:
            return NodeKind(str(self.type).upper())
        except ValueError:
            return None

    @property
    def output_key(self) -> str:
        return f"{self.node_id}_output"


@dataclass(frozen=True)
class Edge:
    id: str
    edge_id: str
    source_node_id: str
    target_node_id: str
    source_handle: Optional[str] = None

    @property
    def branch_label(self) -> str:
        """Text inspected when this edge leaves a Condition node.

        The editor's handle wins when it names a branch; otherwise the
        edge id is used.
        """
        handle = (self.source_handle or "").lower()
        if "true" in handle or "false" in handle:
            return handle
        return (self.edge_id or "").lower()


@dataclass(frozen=True)
class WorkflowDefinition:
    """A workflow with its nodes and edges, edges in stored order."""

    id: str
    tenant_id: str
    name: str
    active: bool
    nodes: tuple[Node, ...] = field(default_factory=tuple)
    edges: tuple[Edge, ...] = field(default_factory=tuple)

    def find_trigger(self) -> Optional[Node]:
        """First Trigger node, if any."""
        return next((n for n in self.nodes if n.kind == NodeKind.TRIGGER), None)

    def get_node(self, row_id: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == row_id), None)

    def outgoing_edges(self, node: Node) -> list[Edge]:
        return [e for e in self.edges if e.source_node_id == node.id]

    @classmethod
    def from_model(cls, workflow) -> "WorkflowDefinition":
        """Build from a Workflow ORM row with nodes and edges loaded."""
        return cls(
            id=workflow.id,
            tenant_id=workflow.tenant_id,
            name=workflow.name,
            active=workflow.active,
            nodes=tuple(
                Node(
                    id=n.id,
                    node_id=n.node_id,
                    type=n.type,
                    label=n.label or "",
                    config=n.config,
                    trigger_event=n.trigger_event,
                )
                for n in workflow.nodes
            ),
            edges=tuple(
                Edge(
                    id=e.id,
                    edge_id=e.edge_id,
                    source_node_id=e.source_node_id,
                    target_node_id=e.target_node_id,
                    source_handle=e.source_handle,
                )
                for e in workflow.edges
            ),
        )
