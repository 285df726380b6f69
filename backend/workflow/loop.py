"""Iteration driver for Loop nodes."""

from typing import Any

import structlog

from core.constants import DEFAULT_LOOP_MAX_ITERATIONS, LoopType
from workflow.context import ExecutionContext
from workflow.templating import TemplateInterpolator

logger = structlog.get_logger(__name__)


class LoopController:
    """Re-enters the walker on a Loop node's outgoing edges.

    foreach: once per item of the (list-coerced) context data, with
    `loopIndex` and `loopItem` scoped onto the shared variable store.

    while: re-evaluates `condition` against the outer context before each
    pass and stops at the first pass where it does not render "true", or
    after `maxIterations` passes.
    """

    def __init__(self, interpolator: TemplateInterpolator):
        self.interpolator = interpolator

    async def run(self, node, config: dict, context: ExecutionContext, walker, depth: int) -> list[Any]:
        loop_type = config.get("loopType") or LoopType.FOREACH.value
        results: list[Any] = []

        if loop_type == LoopType.FOREACH.value:
            items = context.data if isinstance(context.data, list) else [context.data]
            for index, item in enumerate(items):
                iteration = context.child(item, loopIndex=index, loopItem=item)
                results.extend(await walker.walk_edges(node, iteration, depth))

        elif loop_type == LoopType.WHILE.value:
            condition = config.get("condition") or "true"
            max_iterations = int(config.get("maxIterations") or DEFAULT_LOOP_MAX_ITERATIONS)
            iterations = 0
            while iterations < max_iterations:
                if self.interpolator.interpolate_string(condition, context) != "true":
                    break
                results.extend(await walker.walk_edges(node, context, depth))
                iterations += 1

            if iterations >= max_iterations:
                logger.warning("Loop hit max iterations", node_id=node.node_id, max_iterations=max_iterations)

        else:
            logger.warning("Unknown loop type, skipping", node_id=node.node_id, loop_type=loop_type)

        return results
