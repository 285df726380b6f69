"""Shared pytest fixtures for the workflow engine test suite.

Provides:
- Async SQLite database file (fresh per test)
- Session factory wired like the application's
- Recording httpx mock transport for every outbound call
- In-memory credential store, email sender and audit sink
- Helpers to seed workflows and build execution contexts
"""

import json
import os
from typing import Any, Optional
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

# Override settings BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")

from app.config import Settings  # noqa: E402
from core.constants import IntegrationType, TriggerEvent  # noqa: E402
from db.base import Base  # noqa: E402
from db.database import create_session_factory  # noqa: E402
from tasks.base_task import TaskDependencies  # noqa: E402
from tasks.registry import TaskRegistry  # noqa: E402
from workflow.context import ExecutionContext  # noqa: E402
from workflow.engine import build_workflow_engine  # noqa: E402
from workflow.interpreter import NodeInterpreter  # noqa: E402

TENANT_ID = "tenant-1"
OTHER_TENANT_ID = "tenant-2"


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------

class RecordingTransport:
    """Collects every outbound request and answers with `handler`."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json={"ok": True})

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def json_bodies(self) -> list[Any]:
        return [json.loads(request.content) for request in self.requests]


class InMemoryCredentialStore:
    def __init__(self):
        self.integrations: dict[IntegrationType, dict] = {}

    async def get_integration_credentials(self, tenant_id: str, integration_type) -> Optional[dict]:
        return self.integrations.get(IntegrationType(integration_type))


class RecordingEmailSender:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail_with: Optional[Exception] = None

    async def send_email(self, tenant_id: str, to: str, subject: str, body: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"tenant_id": tenant_id, "to": to, "subject": subject, "body": body})


class RecordingAuditSink:
    def __init__(self):
        self.entries: list[dict] = []

    async def log(self, tenant_id, action, resource, resource_id, metadata=None) -> None:
        self.entries.append(
            {
                "tenant_id": tenant_id,
                "action": action,
                "resource": resource,
                "resource_id": resource_id,
                "metadata": metadata,
            }
        )

    @property
    def actions(self) -> list[str]:
        return [entry["action"] for entry in self.entries]


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file for one test.

    A file rather than :memory: so concurrent sessions get separate connections.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'workflows.db'}")
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        WORKFLOW_MAX_DEPTH=50,
        HTTP_TIMEOUT_SECONDS=5.0,
        OPENAI_API_KEY="",
        TELEGRAM_BOT_TOKEN="",
        SLACK_WEBHOOK_URL="",
    )


@pytest.fixture
def http() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def credentials() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def audit() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def interpreter(settings, credentials, email_sender, http) -> NodeInterpreter:
    deps = TaskDependencies(
        credentials=credentials,
        email_sender=email_sender,
        settings=settings,
        transport=http.transport,
    )
    return NodeInterpreter(TaskRegistry(deps), settings)


@pytest.fixture
def engine(session_factory, settings, credentials, email_sender, audit, http):
    return build_workflow_engine(
        session_factory=session_factory,
        settings=settings,
        credentials=credentials,
        email_sender=email_sender,
        audit=audit,
        transport=http.transport,
    )


# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

def make_context(data: Any = None, event=TriggerEvent.LEAD_CREATED, tenant_id: str = TENANT_ID, **variables):
    return ExecutionContext(
        event=event,
        tenant_id=tenant_id,
        data={} if data is None else data,
        variables=dict(variables),
    )


@pytest.fixture
def create_workflow(session_factory):
    """Seed a workflow graph and return its id.

    nodes: dicts with node_id, type and optional config / trigger_event
    edges: (source node_id, target node_id) or
           (source node_id, target node_id, edge_id[, source_handle])
    """
    from db.models.workflow import Workflow, WorkflowEdge, WorkflowNode

    async def _create(
        nodes: list[dict],
        edges: list[tuple] = (),
        tenant_id: str = TENANT_ID,
        active: bool = True,
        name: str = "Test Workflow",
    ) -> str:
        workflow_id = str(uuid4())
        row_ids = {node["node_id"]: str(uuid4()) for node in nodes}

        async with session_factory() as session:
            workflow = Workflow(id=workflow_id, tenant_id=tenant_id, name=name, active=active)
            session.add(workflow)
            for position, node in enumerate(nodes):
                session.add(
                    WorkflowNode(
                        id=row_ids[node["node_id"]],
                        workflow_id=workflow_id,
                        node_id=node["node_id"],
                        type=node["type"],
                        label=node.get("label", node["node_id"]),
                        config=node.get("config"),
                        trigger_event=node.get("trigger_event"),
                        position=position,
                    )
                )
            await session.flush()
            for position, edge in enumerate(edges):
                source, target = edge[0], edge[1]
                session.add(
                    WorkflowEdge(
                        workflow_id=workflow_id,
                        edge_id=edge[2] if len(edge) > 2 else f"e-{source}-{target}",
                        source_node_id=row_ids[source],
                        target_node_id=row_ids[target],
                        source_handle=edge[3] if len(edge) > 3 else None,
                        position=position,
                    )
                )
            await session.commit()
        return workflow_id

    return _create


@pytest.fixture
def get_executions(session_factory):
    """Load every execution row for a workflow."""
    from sqlalchemy import select

    from db.models.execution import WorkflowExecution

    async def _get(workflow_id: str) -> list:
        async with session_factory() as session:
            result = await session.execute(
                select(WorkflowExecution).where(WorkflowExecution.workflow_id == workflow_id)
            )
            return list(result.scalars().all())

    return _get


def trigger_node(event: str = "LEAD_CREATED", node_id: str = "trigger") -> dict:
    return {"node_id": node_id, "type": "TRIGGER", "trigger_event": event, "config": {}}
