"""
Base task interface for side-effecting workflow nodes.

Every connector node (HTTP, email, AI completion, messaging providers)
inherits from BaseTask and implements the execute() method. Tasks raise
on failure; run() turns the outcome into a TaskResult the interpreter
inspects.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import structlog

from app.config import Settings, get_settings
from core.constants import NodeKind
from core.exceptions import NodeConfigMissing
from services.credential_service import CredentialStore
from services.email_service import EmailSender
from workflow.context import ExecutionContext
from workflow.templating import TemplateInterpolator

logger = structlog.get_logger(__name__)


class ConnectorError(Exception):
    """A provider call failed or its credentials are unusable."""


class TaskResult:
    """Standardized result from task execution."""

    def __init__(
        self,
        success: bool,
        output: Any = None,
        error: Optional[str] = None,
        exception: Optional[BaseException] = None,
        duration_ms: float = 0,
    ):
        self.success = success
        self.output = output
        self.error = error
        self.exception = exception
        self.duration_ms = duration_ms


@dataclass
class TaskDependencies:
    """Collaborators shared by all connector tasks."""

    credentials: CredentialStore
    email_sender: EmailSender
    settings: Settings = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    def __post_init__(self):
        if self.settings is None:
            self.settings = get_settings()


class BaseTask(ABC):
    """
    Abstract base class for connector tasks.

    Subclasses must implement:
    - execute(config, context) -> output
    - task_type (class attribute, a NodeKind)
    - display_name (class attribute)
    """

    task_type: NodeKind
    display_name: str = "Base Task"
    description: str = "Abstract base task"

    def __init__(self, deps: TaskDependencies):
        self.deps = deps
        self.interpolator = TemplateInterpolator()

    @abstractmethod
    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        """
        Execute the task with given configuration.

        Args:
            config: Raw node configuration (tasks interpolate what they need)
            context: Live execution context

        Returns:
            JSON-serializable node output
        """

    async def run(self, config: Optional[Dict[str, Any]], context: ExecutionContext) -> TaskResult:
        """
        Run the task with timing and error handling.

        This is the main entry point called by the node interpreter.
        """
        start = time.monotonic()
        try:
            if config is None:
                raise NodeConfigMissing(f"{self.display_name} node missing configuration")

            logger.info(
                "Task starting",
                task_type=self.task_type.value,
                tenant_id=context.tenant_id,
            )
            output = await self.execute(config, context)
            duration_ms = (time.monotonic() - start) * 1000

            logger.info(
                "Task completed",
                task_type=self.task_type.value,
                duration_ms=round(duration_ms, 2),
            )
            return TaskResult(success=True, output=output, duration_ms=duration_ms)

        except Exception as e:
            duration_ms = (time.monotonic() - start) * 1000
            logger.error(
                "Task failed",
                task_type=self.task_type.value,
                error=str(e),
                duration_ms=round(duration_ms, 2),
            )
            return TaskResult(
                success=False,
                error=str(e),
                exception=e,
                duration_ms=duration_ms,
            )

    def http_client(self, **kwargs) -> httpx.AsyncClient:
        """Fresh AsyncClient honoring the configured timeout and transport."""
        kwargs.setdefault("timeout", self.deps.settings.HTTP_TIMEOUT_SECONDS)
        if self.deps.transport is not None:
            kwargs["transport"] = self.deps.transport
        return httpx.AsyncClient(**kwargs)

    async def get_credentials(self, context: ExecutionContext, integration_type) -> Optional[Dict[str, Any]]:
        return await self.deps.credentials.get_integration_credentials(
            context.tenant_id, integration_type
        )


def parse_response_body(response: httpx.Response) -> Any:
    """JSON body when possible, otherwise raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text
