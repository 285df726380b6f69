"""Depth-first traversal of a workflow graph."""

from typing import Any

import structlog

from core.constants import NodeKind
from core.exceptions import WorkflowDepthExceeded
from workflow.context import ExecutionContext
from workflow.definition import Node, WorkflowDefinition
from workflow.interpreter import NodeInterpreter, Traversal

logger = structlog.get_logger(__name__)


def should_follow_condition_edge(label: str, result: Any) -> bool:
    """Decide whether an edge leaving a Condition node is taken.

    Labels mentioning "true" ride the true branch and labels mentioning
    "false" ride the false branch. An edge with neither is followed
    whenever the condition is true.
    """
    label = (label or "").lower()
    on_true = "true" in label
    on_false = "false" in label
    if not on_true and not on_false:
        return bool(result)
    return (on_true and bool(result)) or (on_false and not result)


class GraphWalker:
    """Walks one WorkflowDefinition, strictly sequentially.

    Each visited node is executed, then its outgoing edges are followed
    in stored order. Loop nodes walk their own edges through the
    LoopController, so the walker does not follow them a second time.
    """

    def __init__(self, definition: WorkflowDefinition, interpreter: NodeInterpreter, max_depth: int = 1000):
        self.definition = definition
        self.interpreter = interpreter
        self.max_depth = max_depth

    async def walk(self, node: Node, context: ExecutionContext, depth: int = 0) -> Any:
        """Execute `node` and everything reachable from it; return the node's own result."""
        if depth > self.max_depth:
            raise WorkflowDepthExceeded(self.max_depth)

        result = await self.interpreter.execute(node, context, Traversal(walker=self, depth=depth))

        if node.kind != NodeKind.LOOP:
            await self.walk_edges(node, context, depth, result)

        logger.debug("Node completed", node_id=node.node_id, depth=depth)
        return result

    async def walk_edges(self, node: Node, context: ExecutionContext, depth: int, result: Any = None) -> list[Any]:
        """Follow the outgoing edges of `node`; return each branch's result."""
        branch_results = []
        is_condition = node.kind == NodeKind.CONDITION

        for edge in self.definition.outgoing_edges(node):
            target = self.definition.get_node(edge.target_node_id)
            if target is None:
                logger.warning("Edge target not found", edge_id=edge.edge_id or edge.id, node_id=node.node_id)
                continue

            if is_condition and not should_follow_condition_edge(edge.branch_label, result):
                logger.debug("Skipping condition branch", edge_id=edge.edge_id or edge.id, result=result)
                continue

            branch_results.append(await self.walk(target, context, depth + 1))

        return branch_results
