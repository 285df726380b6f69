"""Event Router: fans a domain event out to every matching workflow.

CRM services call `trigger_by_event` fire-and-forget after a business
operation (lead created, task completed, ...). Matching workflows run
concurrently and independently; the router only logs their outcome and
never raises, so the business operation is never affected by its
automations.
"""

import asyncio
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.constants import NodeKind, resolve_trigger_event
from core.exceptions import UnknownEvent
from db.models.execution import WorkflowExecution
from db.models.workflow import Workflow, WorkflowNode
from workflow.context import ExecutionContext
from workflow.engine import WorkflowEngine, get_workflow_engine
from workflow.loader import GraphLoader

logger = structlog.get_logger(__name__)


class EventRouter:
    """Routes domain events to workflows and exposes execution history."""

    def __init__(self, engine: WorkflowEngine, session_factory: async_sessionmaker[AsyncSession]):
        self.engine = engine
        self.session_factory = session_factory

    async def find_matching_workflows(self, tenant_id: str, event) -> list[str]:
        """Ids of the tenant's active workflows whose Trigger node listens for `event`."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Workflow.id)
                .join(WorkflowNode, WorkflowNode.workflow_id == Workflow.id)
                .where(
                    Workflow.tenant_id == tenant_id,
                    Workflow.active.is_(True),
                    WorkflowNode.type == NodeKind.TRIGGER.value,
                    WorkflowNode.trigger_event == event.value,
                )
                .distinct()
            )
            return list(result.scalars().all())

    async def trigger_by_event(self, event_name: str, tenant_id: str, payload: Any) -> dict[str, bool]:
        """Run every workflow listening for `event_name`.

        Returns:
            Mapping of workflow id to whether its execution succeeded
            (empty when nothing matched). Never raises.
        """
        try:
            event = resolve_trigger_event(event_name)
            if event is None:
                logger.warning("Unknown workflow event", event_name=event_name, tenant_id=tenant_id)
                return {}

            workflow_ids = await self.find_matching_workflows(tenant_id, event)
            if not workflow_ids:
                logger.info("No workflows listen for event", event_name=event_name, tenant_id=tenant_id)
                return {}

            logger.info(
                "Triggering workflows",
                event_name=event_name,
                tenant_id=tenant_id,
                count=len(workflow_ids),
            )

            # one fresh context per workflow
            results = await asyncio.gather(
                *(
                    self.engine.execute(
                        workflow_id,
                        ExecutionContext(event=event, tenant_id=tenant_id, data=payload, variables={}),
                    )
                    for workflow_id in workflow_ids
                ),
                return_exceptions=True,
            )

            outcome = {}
            for workflow_id, result in zip(workflow_ids, results):
                if isinstance(result, BaseException):
                    logger.error(
                        "Workflow failed for event",
                        workflow_id=workflow_id,
                        event_name=event_name,
                        error=str(result),
                    )
                    outcome[workflow_id] = False
                else:
                    logger.info(
                        "Workflow completed for event",
                        workflow_id=workflow_id,
                        event_name=event_name,
                        execution_id=result,
                    )
                    outcome[workflow_id] = True
            return outcome

        except Exception as e:
            logger.error("Event routing failed", event_name=event_name, tenant_id=tenant_id, error=str(e), exc_info=True)
            return {}

    async def trigger_workflow(self, workflow_id: str, tenant_id: str, event_name: str, data: Any) -> str:
        """Manually run one workflow; errors propagate to the caller."""
        event = resolve_trigger_event(event_name)
        if event is None:
            raise UnknownEvent(event_name)

        context = ExecutionContext(event=event, tenant_id=tenant_id, data=data, variables={})
        return await self.engine.execute(workflow_id, context)

    async def list_executions(self, workflow_id: str, tenant_id: str, limit: int = 50) -> list[WorkflowExecution]:
        """Execution history for one workflow, newest first.

        Raises:
            WorkflowNotFound: If missing or owned by another tenant
        """
        await GraphLoader(self.session_factory).get(workflow_id, tenant_id)

        async with self.session_factory() as session:
            result = await session.execute(
                select(WorkflowExecution)
                .where(WorkflowExecution.workflow_id == workflow_id)
                .order_by(WorkflowExecution.started_at.desc(), WorkflowExecution.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())


# Singleton
_router: Optional[EventRouter] = None


def get_event_router() -> EventRouter:
    """Get or create the process-wide event router."""
    global _router
    if _router is None:
        from db.database import AsyncSessionLocal

        _router = EventRouter(get_workflow_engine(), AsyncSessionLocal)
    return _router
