"""Workflow event and execution schemas."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class EventPublish(BaseModel):
    """Domain event published by a CRM service."""

    event: str = Field(description="Event name, e.g. lead.created")
    data: Any = Field(default_factory=dict, description="Event payload")


class EventAccepted(BaseModel):
    """Acknowledgement for a queued event."""

    accepted: bool = Field(description="False when the event queue was full")
    event: str


class ManualExecution(BaseModel):
    """Request to run one workflow by hand."""

    event: str = Field(description="Event name the trigger must listen for")
    data: Any = Field(default_factory=dict, description="Payload handed to the trigger node")


class ExecutionStarted(BaseModel):
    execution_id: str = Field(description="Execution ID")


class ExecutionResponse(BaseModel):
    """Execution record."""

    id: str = Field(description="Execution ID")
    workflow_id: str = Field(description="Workflow ID")
    status: str = Field(description="Execution status (running, success, failed)")
    input: Optional[Any] = Field(default=None, description="Event payload snapshot")
    output: Optional[Any] = Field(default=None, description="Traversal output snapshot")
    error: Optional[str] = Field(default=None, description="Error message if execution failed")
    started_at: Optional[datetime] = Field(default=None, description="Execution start timestamp")
    completed_at: Optional[datetime] = Field(default=None, description="Execution completion timestamp")

    class Config:
        from_attributes = True


class ExecutionListResponse(BaseModel):
    executions: List[ExecutionResponse] = Field(description="Executions, newest first")
    total: int = Field(description="Number of executions returned")
