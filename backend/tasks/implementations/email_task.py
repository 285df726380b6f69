"""Email task: hands a templated message to the configured EmailSender."""

from typing import Any, Dict

from core.constants import NodeKind
from core.exceptions import NodeConfigMissing
from tasks.base_task import BaseTask, ConnectorError
from workflow.context import ExecutionContext


class EmailTask(BaseTask):
    """Send an email.

    Config:
        to: Recipient address (templated, required)
        subject: Subject line (templated, required)
        body: Message body (templated)
    """

    task_type = NodeKind.EMAIL
    display_name = "Email"
    description = "Send an email through the tenant's mail sender"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        to = self.interpolator.interpolate_string(config.get("to") or "", context)
        subject = self.interpolator.interpolate_string(config.get("subject") or "", context)
        body = self.interpolator.interpolate_string(config.get("body") or "", context)
        if not to or not subject:
            raise NodeConfigMissing("Email node requires to and subject")

        try:
            await self.deps.email_sender.send_email(
                tenant_id=context.tenant_id,
                to=to,
                subject=subject,
                body=body,
            )
        except Exception as e:
            raise ConnectorError(f"Email sending failed: {e}") from e

        return {"success": True, "to": to, "subject": subject}


# Export for task registry
EMAIL_TASK_TYPES = {
    NodeKind.EMAIL: EmailTask,
}
