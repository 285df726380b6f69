"""Constants and enums for the workflow engine."""

from enum import Enum


class NodeKind(str, Enum):
    """Closed set of automation node kinds."""

    TRIGGER = "TRIGGER"
    HTTP_REQUEST = "HTTP_REQUEST"
    EMAIL = "EMAIL"
    DELAY = "DELAY"
    CONDITION = "CONDITION"
    SET_VARIABLE = "SET_VARIABLE"
    WEBHOOK = "WEBHOOK"
    CHATGPT = "CHATGPT"
    WHATSAPP = "WHATSAPP"
    TELEGRAM = "TELEGRAM"
    SLACK = "SLACK"
    SMS = "SMS"
    LOG = "LOG"
    TRANSFORM = "TRANSFORM"
    FILTER = "FILTER"
    LOOP = "LOOP"
    MERGE = "MERGE"
    SPLIT = "SPLIT"


class TriggerEvent(str, Enum):
    """Domain events a Trigger node can listen for."""

    LEAD_CREATED = "LEAD_CREATED"
    LEAD_UPDATED = "LEAD_UPDATED"
    LEAD_STAGE_CHANGED = "LEAD_STAGE_CHANGED"
    LEAD_ASSIGNED = "LEAD_ASSIGNED"
    TASK_CREATED = "TASK_CREATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    USER_INVITED = "USER_INVITED"


# External event names published by CRM services -> trigger enum
EVENT_NAME_MAP: dict[str, TriggerEvent] = {
    "lead.created": TriggerEvent.LEAD_CREATED,
    "lead.updated": TriggerEvent.LEAD_UPDATED,
    "lead.stage.changed": TriggerEvent.LEAD_STAGE_CHANGED,
    "lead.assigned": TriggerEvent.LEAD_ASSIGNED,
    "task.created": TriggerEvent.TASK_CREATED,
    "task.completed": TriggerEvent.TASK_COMPLETED,
    "user.invited": TriggerEvent.USER_INVITED,
}


class ExecutionStatus(str, Enum):
    """Workflow execution status."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class IntegrationType(str, Enum):
    """Per-tenant integration credential types."""

    CHATGPT = "CHATGPT"
    WHATSAPP = "WHATSAPP"
    TELEGRAM = "TELEGRAM"
    SLACK = "SLACK"
    SMS = "SMS"
    EMAIL = "EMAIL"


class LoopType(str, Enum):
    """Iteration strategies for Loop nodes."""

    FOREACH = "foreach"
    WHILE = "while"


class AuditAction(str, Enum):
    """Audit actions emitted by the execution engine."""

    EXECUTION_START = "workflow.execution.start"
    EXECUTION_SUCCESS = "workflow.execution.success"
    EXECUTION_FAILED = "workflow.execution.failed"


DEFAULT_LOOP_MAX_ITERATIONS = 100
DEFAULT_DELAY_MS = 1000
DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
DEFAULT_CHAT_TEMPERATURE = 0.7
DEFAULT_WHATSAPP_API_VERSION = "v22.0"
DEFAULT_TWILIO_WHATSAPP_FROM = "whatsapp:+14155238886"


def resolve_trigger_event(name: str):
    """Map `lead.created` or `LEAD_CREATED` to a TriggerEvent, else None."""
    if name in EVENT_NAME_MAP:
        return EVENT_NAME_MAP[name]
    try:
        return TriggerEvent(str(name).upper())
    except ValueError:
        return None
