"""Execution record lifecycle: one row per triggered workflow run."""

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.constants import ExecutionStatus
from db.models.execution import WorkflowExecution

logger = structlog.get_logger(__name__)


def json_safe(value: Any) -> Any:
    """Copy of `value` that the JSON column can store."""
    return json.loads(json.dumps(value, default=str))


class ExecutionRecorder:
    """Creates the running record and applies its single terminal update."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def start(self, workflow_id: str, input: Any) -> str:
        async with self.session_factory() as session:
            execution = WorkflowExecution(
                workflow_id=workflow_id,
                status=ExecutionStatus.RUNNING.value,
                input=json_safe(input),
                started_at=datetime.now(timezone.utc),
            )
            session.add(execution)
            await session.commit()
            logger.info("Execution started", execution_id=execution.id, workflow_id=workflow_id)
            return execution.id

    async def complete(self, execution_id: str, output: Any) -> None:
        await self._finish(execution_id, ExecutionStatus.SUCCESS, output=json_safe(output))

    async def fail(self, execution_id: str, error: str) -> None:
        await self._finish(execution_id, ExecutionStatus.FAILED, error=error)

    async def _finish(self, execution_id: str, status: ExecutionStatus, **fields) -> None:
        async with self.session_factory() as session:
            execution = await session.get(WorkflowExecution, execution_id)
            if execution is None:
                logger.error("Execution record vanished", execution_id=execution_id)
                return
            execution.status = status.value
            execution.completed_at = datetime.now(timezone.utc)
            for key, value in fields.items():
                setattr(execution, key, value)
            await session.commit()

        logger.info("Execution finished", execution_id=execution_id, status=status.value)
