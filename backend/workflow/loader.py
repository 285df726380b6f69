"""Loads workflow definitions from the database."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import WorkflowInactive, WorkflowNotFound
from db.models.workflow import Workflow
from workflow.definition import WorkflowDefinition


class GraphLoader:
    """Fetches a tenant's workflow with nodes and edges, ready to walk."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, workflow_id: str, tenant_id: str) -> WorkflowDefinition:
        """Load regardless of the active flag.

        Raises:
            WorkflowNotFound: If missing or owned by another tenant
        """
        async with self.session_factory() as session:
            result = await session.execute(select(Workflow).where(Workflow.id == workflow_id))
            workflow = result.scalar_one_or_none()
            if workflow is None or workflow.tenant_id != tenant_id:
                raise WorkflowNotFound()
            return WorkflowDefinition.from_model(workflow)

    async def load(self, workflow_id: str, tenant_id: str) -> WorkflowDefinition:
        """Load an executable workflow.

        Raises:
            WorkflowNotFound: If missing or owned by another tenant
            WorkflowInactive: If the workflow is switched off
        """
        definition = await self.get(workflow_id, tenant_id)
        if not definition.active:
            raise WorkflowInactive()
        return definition
