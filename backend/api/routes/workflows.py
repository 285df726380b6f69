"""Workflow event and execution endpoints."""

from fastapi import APIRouter, Depends, Query, status

from api.schemas.execution import (
    EventAccepted,
    EventPublish,
    ExecutionListResponse,
    ExecutionResponse,
    ExecutionStarted,
    ManualExecution,
)
from app.dependencies import get_bus, get_router, get_tenant_id
from triggers.event_bus import EventBus
from triggers.router import EventRouter

router = APIRouter()


@router.post("/events", response_model=EventAccepted, status_code=status.HTTP_202_ACCEPTED)
async def publish_event(
    body: EventPublish,
    tenant_id: str = Depends(get_tenant_id),
    bus: EventBus = Depends(get_bus),
) -> EventAccepted:
    """
    Publish a domain event.

    Matching workflows run in the background; their outcome shows up in
    execution history only.
    """
    accepted = bus.publish(body.event, tenant_id, body.data)
    return EventAccepted(accepted=accepted, event=body.event)


@router.post("/{workflow_id}/execute", response_model=ExecutionStarted)
async def execute_workflow(
    workflow_id: str,
    body: ManualExecution,
    tenant_id: str = Depends(get_tenant_id),
    event_router: EventRouter = Depends(get_router),
) -> ExecutionStarted:
    """
    Run one workflow now and wait for it to finish.

    Workflow errors are returned with their own status code.
    """
    execution_id = await event_router.trigger_workflow(workflow_id, tenant_id, body.event, body.data)
    return ExecutionStarted(execution_id=execution_id)


@router.get("/{workflow_id}/executions", response_model=ExecutionListResponse)
async def list_executions(
    workflow_id: str,
    limit: int = Query(50, ge=1, le=500),
    tenant_id: str = Depends(get_tenant_id),
    event_router: EventRouter = Depends(get_router),
) -> ExecutionListResponse:
    """List a workflow's executions, newest first."""
    executions = await event_router.list_executions(workflow_id, tenant_id, limit=limit)
    return ExecutionListResponse(
        executions=[ExecutionResponse.model_validate(ex) for ex in executions],
        total=len(executions),
    )
