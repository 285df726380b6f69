"""
Node interpreter: executes exactly one node against an ExecutionContext.

Built-in kinds (control flow and data shaping) are handled here; the
side-effecting connector kinds are delegated to the TaskRegistry.
"""

import asyncio
import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from app.config import Settings, get_settings
from core.constants import DEFAULT_DELAY_MS, NodeKind
from core.exceptions import (
    NodeConfigMissing,
    NodeExecutionFailed,
    UnknownNodeType,
    WorkflowError,
)
from tasks.registry import TaskRegistry
from workflow.conditions import OPERATORS, ConditionEvaluator
from workflow.context import ExecutionContext
from workflow.definition import Node
from workflow.loop import LoopController
from workflow.templating import TemplateInterpolator
from workflow.values import stringify_value

logger = structlog.get_logger(__name__)

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class Traversal:
    """Where in the graph walk a node is being executed."""

    walker: Any
    depth: int = 0


Handler = Callable[[Node, ExecutionContext, Optional[Traversal]], Awaitable[Any]]


class NodeInterpreter:
    """Dispatches a node to the handler for its NodeKind."""

    def __init__(self, registry: TaskRegistry, settings: Settings = None):
        self.registry = registry
        self.settings = settings or get_settings()
        self.interpolator = TemplateInterpolator()
        self.conditions = ConditionEvaluator()
        self.loops = LoopController(self.interpolator)

        self._handlers: Dict[NodeKind, Handler] = {
            NodeKind.TRIGGER: self._trigger,
            NodeKind.DELAY: self._delay,
            NodeKind.CONDITION: self._condition,
            NodeKind.SET_VARIABLE: self._set_variable,
            NodeKind.LOG: self._log,
            NodeKind.TRANSFORM: self._transform,
            NodeKind.FILTER: self._filter,
            NodeKind.LOOP: self._loop,
            NodeKind.MERGE: self._merge,
            NodeKind.SPLIT: self._split,
        }
        for kind in registry.available_types:
            self._handlers[kind] = self._run_task

        missing = [kind.value for kind in NodeKind if kind not in self._handlers]
        if missing:
            raise RuntimeError(f"No handler registered for node kinds: {', '.join(missing)}")

    async def execute(
        self,
        node: Node,
        context: ExecutionContext,
        traversal: Optional[Traversal] = None,
    ) -> Any:
        """Run one node and record its output under `{node_id}_output`.

        Raises:
            UnknownNodeType: If the node's type is not a NodeKind
            NodeExecutionFailed: If a handler fails with a non-workflow error
            WorkflowError: Typed errors raised by handlers propagate unchanged
        """
        kind = node.kind
        if kind is None:
            raise UnknownNodeType(str(node.type))

        logger.debug("Executing node", node_id=node.node_id, kind=kind.value, label=node.label)

        try:
            result = await self._handlers[kind](node, context, traversal)
        except WorkflowError:
            raise
        except Exception as e:
            raise NodeExecutionFailed(kind.value, e) from e

        if result is not None:
            context.variables[node.output_key] = result
        return result

    # ─── Connectors ────────────────────────────────────────

    async def _run_task(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> Any:
        task = self.registry.get_instance(node.kind)
        task_result = await task.run(node.config, context)
        if task_result.success:
            return task_result.output

        if isinstance(task_result.exception, WorkflowError):
            raise task_result.exception
        raise NodeExecutionFailed(node.kind.value, task_result.exception or RuntimeError(task_result.error))

    # ─── Built-ins ─────────────────────────────────────────

    async def _trigger(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> Any:
        return context.data

    async def _delay(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> Any:
        config = node.config or {}
        delay_ms = int(config.get("delayMs") or DEFAULT_DELAY_MS)
        cap = self.settings.WORKFLOW_MAX_DELAY_MS
        if cap and delay_ms > cap:
            logger.warning("Delay capped", node_id=node.node_id, requested_ms=delay_ms, cap_ms=cap)
            delay_ms = cap

        await asyncio.sleep(max(delay_ms, 0) / 1000)
        return {"delayed": delay_ms}

    async def _condition(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> bool:
        config = self._require_config(node, "Condition")
        left = self.interpolator.interpolate_value(config.get("leftValue") or "", context)
        operator = config.get("operator") or "=="
        right = self.interpolator.interpolate_value(config.get("rightValue") or "", context)
        return self.conditions.evaluate(left, operator, right)

    async def _set_variable(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> Any:
        config = self._require_config(node, "Set Variable")
        name = config.get("variableName") or ""
        if not name:
            raise NodeConfigMissing("Set Variable node missing variableName")

        value = self.interpolator.interpolate_value(config.get("variableValue") or "", context)
        context.variables[name] = value
        return {name: value}

    async def _log(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> Any:
        config = node.config or {}
        message = self.interpolator.interpolate_string(config.get("message") or "{{data}}", context)
        level = config.get("level") or "info"

        log = getattr(logger, level if level in LOG_LEVELS else "info")
        log("Workflow log node", node_id=node.node_id, tenant_id=context.tenant_id, message=message)

        return {
            "logged": True,
            "message": message,
            "level": level,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _transform(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> Any:
        config = self._require_config(node, "Transform")
        transform_type = config.get("transformType") or "json"
        data = context.data

        if transform_type == "json":
            text = self.interpolator.interpolate_string(config.get("jsonString") or "{{data}}", context)
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"JSON transform failed: {e}") from e
        if transform_type == "stringify":
            return json.dumps(data, separators=(",", ":"))
        if transform_type == "uppercase":
            return stringify_value(data).upper()
        if transform_type == "lowercase":
            return stringify_value(data).lower()
        if transform_type == "trim":
            return stringify_value(data).strip()
        if transform_type == "replace":
            search = config.get("search") or ""
            replacement = config.get("replace") or ""
            return re.sub(search, lambda _: replacement, stringify_value(data))
        return data

    async def _filter(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> list:
        config = self._require_config(node, "Filter")
        items = context.data if isinstance(context.data, list) else [context.data]
        field = config.get("filterField") or ""
        operator = config.get("filterOperator") or "=="
        expected = self.interpolator.interpolate_value(config.get("filterValue") or "", context)

        # unsupported operators keep every item
        if operator not in OPERATORS:
            return list(items)

        def _field_value(item: Any) -> Any:
            if field and isinstance(item, dict):
                return item.get(field) or item
            return item

        return [item for item in items if self.conditions.evaluate(_field_value(item), operator, expected)]

    async def _loop(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> list:
        config = self._require_config(node, "Loop")
        if traversal is None:
            raise RuntimeError("Loop node requires an active graph traversal")
        return await self.loops.run(node, config, context, traversal.walker, traversal.depth)

    async def _merge(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> dict:
        data = context.data if isinstance(context.data, dict) else {}
        return {**data, **context.variables.to_dict(), "merged": True}

    async def _split(self, node: Node, context: ExecutionContext, traversal: Optional[Traversal]) -> list:
        config = node.config or {}
        data = context.data
        split_field = config.get("splitField") or ""

        if isinstance(data, list):
            return [
                {**item, "splitIndex": index} if isinstance(item, dict) else {"value": item, "splitIndex": index}
                for index, item in enumerate(data)
            ]
        if split_field and isinstance(data, dict):
            value = data.get(split_field)
            return list(value) if isinstance(value, list) else [value]
        return [data]

    @staticmethod
    def _require_config(node: Node, display_name: str) -> dict:
        if node.config is None:
            raise NodeConfigMissing(f"{display_name} node missing configuration")
        return node.config
