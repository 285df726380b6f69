"""Custom exceptions for the workflow engine."""

from typing import Optional


class WorkflowError(Exception):
    """Base exception for the workflow engine."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class WorkflowNotFound(WorkflowError):
    """Workflow missing or owned by another tenant."""

    def __init__(self, message: str = "Workflow not found"):
        super().__init__(message, 404)


class WorkflowInactive(WorkflowError):
    """Workflow exists but is switched off."""

    def __init__(self, message: str = "Workflow is inactive"):
        super().__init__(message, 409)


class TriggerMismatch(WorkflowError):
    """Trigger node listens for a different event than the one fired."""

    def __init__(self, expected: Optional[str], received: Optional[str]):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Trigger event does not match (expected {expected}, got {received})", 422
        )


class NoTriggerNode(WorkflowError):
    """Workflow has no Trigger node to start from."""

    def __init__(self, message: str = "No trigger node found in workflow"):
        super().__init__(message, 422)


class NodeConfigMissing(WorkflowError):
    """A node has no config or lacks a required field."""

    def __init__(self, message: str):
        super().__init__(message, 422)


class NodeExecutionFailed(WorkflowError):
    """A node handler failed; wraps the underlying cause."""

    def __init__(self, kind: str, cause: BaseException):
        self.kind = kind
        self.cause = cause
        super().__init__(f"{kind} node failed: {cause}", 502)


class UnknownNodeType(WorkflowError):
    """Node kind outside the closed set of handlers."""

    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"Unknown node type: {node_type}", 422)


class UnknownOperator(WorkflowError):
    """Condition operator outside the supported set."""

    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Unknown operator: {operator}", 422)


class HttpTargetRejected(WorkflowError):
    """Outbound URL blocked by the SSRF guard."""

    def __init__(self, message: str):
        super().__init__(message, 422)


class WorkflowDepthExceeded(WorkflowError):
    """Traversal went deeper than the configured maximum."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Workflow traversal exceeded max depth of {max_depth}", 422)


class UnknownEvent(WorkflowError):
    """Event name that maps to no trigger event."""

    def __init__(self, event_name: str):
        self.event_name = event_name
        super().__init__(f"Unknown event: {event_name}", 422)
