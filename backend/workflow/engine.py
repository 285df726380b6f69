"""Workflow Execution Engine: runs one workflow for one event.

Given a workflow id and a fresh ExecutionContext the engine:

- loads the tenant's workflow (must exist and be active)
- opens a `running` execution record and audits the start
- finds the Trigger node and checks it listens for the fired event
- walks the graph depth-first from the Trigger node
- closes the record as `success` (with output) or `failed` (with the
  error message) and audits the outcome

Every error after the record is opened is written to the record and
then re-raised to the caller.
"""

from typing import Optional

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings, get_settings
from core.constants import AuditAction
from core.exceptions import NoTriggerNode, TriggerMismatch
from services.audit_service import AuditSink, DatabaseAuditSink
from services.credential_service import CredentialStore, DatabaseCredentialStore
from services.email_service import EmailSender, SmtpEmailSender
from tasks.base_task import TaskDependencies
from tasks.registry import TaskRegistry
from workflow.context import ExecutionContext
from workflow.interpreter import NodeInterpreter
from workflow.loader import GraphLoader
from workflow.recorder import ExecutionRecorder
from workflow.walker import GraphWalker

logger = structlog.get_logger(__name__)


class WorkflowEngine:
    """Entry point for executing a single workflow."""

    def __init__(
        self,
        loader: GraphLoader,
        recorder: ExecutionRecorder,
        interpreter: NodeInterpreter,
        audit: AuditSink,
        max_depth: int = 200,
    ):
        self.loader = loader
        self.recorder = recorder
        self.interpreter = interpreter
        self.audit = audit
        self.max_depth = max_depth

    async def execute(self, workflow_id: str, context: ExecutionContext) -> str:
        """Execute a workflow and return the execution id.

        Raises:
            WorkflowNotFound / WorkflowInactive: Before any record is created
            WorkflowError: Any traversal failure, after it is recorded
        """
        definition = await self.loader.load(workflow_id, context.tenant_id)

        execution_id = await self.recorder.start(workflow_id, context.data)
        await self.audit.log(
            tenant_id=context.tenant_id,
            action=AuditAction.EXECUTION_START.value,
            resource="workflow",
            resource_id=workflow_id,
            metadata={"executionId": execution_id, "event": _event_value(context.event)},
        )
        logger.info(
            "Workflow execution started",
            workflow_id=workflow_id,
            workflow_name=definition.name,
            execution_id=execution_id,
            tenant_id=context.tenant_id,
        )

        try:
            trigger = definition.find_trigger()
            if trigger is None:
                raise NoTriggerNode()

            if trigger.trigger_event != _event_value(context.event):
                raise TriggerMismatch(trigger.trigger_event, _event_value(context.event))

            walker = GraphWalker(definition, self.interpreter, max_depth=self.max_depth)
            output = await walker.walk(trigger, context)

            await self.recorder.complete(execution_id, output)
            await self.audit.log(
                tenant_id=context.tenant_id,
                action=AuditAction.EXECUTION_SUCCESS.value,
                resource="workflow",
                resource_id=workflow_id,
                metadata={"executionId": execution_id},
            )

        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            await self.recorder.fail(execution_id, message)
            await self.audit.log(
                tenant_id=context.tenant_id,
                action=AuditAction.EXECUTION_FAILED.value,
                resource="workflow",
                resource_id=workflow_id,
                metadata={"executionId": execution_id, "error": message},
            )
            logger.error(
                "Workflow execution failed",
                workflow_id=workflow_id,
                execution_id=execution_id,
                error=message,
            )
            raise

        logger.info("Workflow execution succeeded", workflow_id=workflow_id, execution_id=execution_id)
        return execution_id


def _event_value(event) -> Optional[str]:
    return getattr(event, "value", event)


def build_workflow_engine(
    session_factory: async_sessionmaker[AsyncSession] = None,
    settings: Settings = None,
    credentials: CredentialStore = None,
    email_sender: EmailSender = None,
    audit: AuditSink = None,
    transport: httpx.AsyncBaseTransport = None,
) -> WorkflowEngine:
    """Wire an engine with database-backed collaborators.

    Every collaborator can be swapped, which is how tests inject an
    in-memory database and an httpx mock transport.
    """
    if session_factory is None:
        from db.database import AsyncSessionLocal

        session_factory = AsyncSessionLocal
    settings = settings or get_settings()
    credentials = credentials or DatabaseCredentialStore(session_factory)
    email_sender = email_sender or SmtpEmailSender(settings, credentials)

    deps = TaskDependencies(
        credentials=credentials,
        email_sender=email_sender,
        settings=settings,
        transport=transport,
    )
    interpreter = NodeInterpreter(TaskRegistry(deps), settings)

    return WorkflowEngine(
        loader=GraphLoader(session_factory),
        recorder=ExecutionRecorder(session_factory),
        interpreter=interpreter,
        audit=audit or DatabaseAuditSink(session_factory),
        max_depth=settings.WORKFLOW_MAX_DEPTH,
    )


# ─── Singleton ─────────────────────────────────────────────────

_engine: Optional[WorkflowEngine] = None


def get_workflow_engine() -> WorkflowEngine:
    """Get or create the process-wide workflow engine."""
    global _engine
    if _engine is None:
        _engine = build_workflow_engine()
    return _engine
