"""
AI completion task.

Sends a templated prompt to an OpenAI-compatible chat completions
endpoint and returns the first choice. The API key is taken from the
node config, then the tenant's CHATGPT integration, then OPENAI_API_KEY.
"""

from typing import Any, Dict

import httpx

from core.constants import DEFAULT_CHAT_MODEL, DEFAULT_CHAT_TEMPERATURE, IntegrationType, NodeKind
from core.exceptions import NodeConfigMissing
from tasks.base_task import BaseTask, ConnectorError, parse_response_body
from workflow.context import ExecutionContext


class ChatGPTTask(BaseTask):
    """Send a prompt to a chat completion model and get a response."""

    task_type = NodeKind.CHATGPT
    display_name = "ChatGPT"
    description = "Generate text with an OpenAI chat model"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        api_key = config.get("apiKey")
        if not api_key:
            credentials = await self.get_credentials(context, IntegrationType.CHATGPT)
            api_key = (credentials or {}).get("apiKey") or self.deps.settings.OPENAI_API_KEY
        if not api_key:
            raise ConnectorError("ChatGPT API key not configured")

        prompt = self.interpolator.interpolate_string(config.get("prompt") or "", context)
        if not prompt:
            raise NodeConfigMissing("ChatGPT node missing prompt")

        temperature = config.get("temperature")
        payload = {
            "model": config.get("model") or DEFAULT_CHAT_MODEL,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": DEFAULT_CHAT_TEMPERATURE if temperature in (None, "") else float(temperature),
        }
        if config.get("maxTokens"):
            payload["max_tokens"] = int(config["maxTokens"])

        try:
            async with self.http_client() as client:
                response = await client.post(
                    self.deps.settings.OPENAI_API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {api_key}"},
                )
        except httpx.HTTPError as e:
            raise ConnectorError(f"ChatGPT request failed: {e}")

        body = parse_response_body(response)
        if response.is_error:
            detail = body.get("error", {}).get("message") if isinstance(body, dict) else body
            raise ConnectorError(f"ChatGPT API error ({response.status_code}): {detail or response.reason_phrase}")

        choices = body.get("choices") or [{}]
        return {
            "success": True,
            "response": (choices[0].get("message") or {}).get("content") or "",
            "usage": body.get("usage"),
        }


# Export for task registry
AI_TASK_TYPES = {
    NodeKind.CHATGPT: ChatGPTTask,
}
