"""HTTP Request and outbound Webhook task implementations.

Both call tenant-configured URLs, so both go through the SSRF guard
before any request is made.
"""

import json
from typing import Any, Dict

import httpx
import structlog

from core.constants import NodeKind
from core.url_guard import validate_http_target
from tasks.base_task import BaseTask, ConnectorError, parse_response_body
from workflow.context import ExecutionContext

logger = structlog.get_logger(__name__)


class HttpRequestTask(BaseTask):
    """Execute an HTTP request to an external service.

    Config:
        url: Target URL (required, templated)
        method: HTTP method (default: GET)
        headers: Dict of HTTP headers (templated)
        body: JSON text (templated, then parsed) or an object (templated)
    """

    task_type = NodeKind.HTTP_REQUEST
    display_name = "HTTP Request"
    description = "Make HTTP requests to APIs and web services"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        url = self.interpolator.interpolate_string(config.get("url") or "", context)
        method = (config.get("method") or "GET").upper()
        headers = self.interpolator.interpolate_object(config.get("headers") or {}, context)

        validate_http_target(url, self.deps.settings.http_allowlist)

        body = config.get("body")
        payload = None
        if isinstance(body, str) and body:
            interpolated = self.interpolator.interpolate_string(body, context)
            try:
                payload = json.loads(interpolated)
            except json.JSONDecodeError as e:
                raise ConnectorError(f"HTTP Request failed: body is not valid JSON ({e})")
        elif body:
            payload = self.interpolator.interpolate_object(body, context)

        request_headers = {"Content-Type": "application/json", **headers}

        try:
            async with self.http_client() as client:
                response = await client.request(
                    method,
                    url,
                    headers=request_headers,
                    content=json.dumps(payload) if payload is not None else None,
                )
        except httpx.HTTPError as e:
            raise ConnectorError(f"HTTP Request failed: {e}")

        return {
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "data": parse_response_body(response),
        }


class WebhookTask(BaseTask):
    """Send an outgoing webhook.

    Config:
        url: Target URL (required, templated)
        method: HTTP method (default: POST)
        body: Object to send (templated); defaults to the event data
    """

    task_type = NodeKind.WEBHOOK
    display_name = "Webhook"
    description = "Send event data to an external endpoint"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        url = self.interpolator.interpolate_string(config.get("url") or "", context)
        method = (config.get("method") or "POST").upper()
        body = config.get("body")
        payload = self.interpolator.interpolate_object(body, context) if body else context.data

        validate_http_target(url, self.deps.settings.http_allowlist)

        try:
            async with self.http_client() as client:
                response = await client.request(method, url, json=payload)
        except httpx.HTTPError as e:
            raise ConnectorError(f"Webhook failed: {e}")

        logger.info("Webhook delivered", url=url, status=response.status_code)
        return {
            "status": response.status_code,
            "data": parse_response_body(response),
        }


# Export for task registry
HTTP_TASK_TYPES = {
    NodeKind.HTTP_REQUEST: HttpRequestTask,
    NodeKind.WEBHOOK: WebhookTask,
}
