"""
Messaging task implementations: WhatsApp, Telegram, Slack and SMS.

Provider credentials come from the tenant's integration of the matching
type. Telegram and Slack also accept values straight from the node
config and fall back to process-wide settings.
"""

import re
from typing import Any, Dict

import httpx
import structlog

from core.constants import (
    DEFAULT_TWILIO_WHATSAPP_FROM,
    DEFAULT_WHATSAPP_API_VERSION,
    IntegrationType,
    NodeKind,
)
from core.exceptions import NodeConfigMissing
from core.url_guard import validate_http_target
from tasks.base_task import BaseTask, ConnectorError, parse_response_body
from workflow.context import ExecutionContext

logger = structlog.get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
META_GRAPH_BASE = "https://graph.facebook.com"
TELEGRAM_API_BASE = "https://api.telegram.org"

PHONE_NUMBER_ID_RE = re.compile(r"^\d{10,20}$")


def _twilio_url(account_sid: str) -> str:
    return f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json"


def _error_detail(body: Any) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return f"[{error.get('code')}] {error.get('type')} - {error.get('message')}"
        return str(body.get("message") or body.get("description") or body)
    return str(body)


class WhatsAppTask(BaseTask):
    """Send a WhatsApp text message.

    The tenant integration selects the provider: Twilio when
    `provider == "twilio"`, a generic `webhookUrl` when no Meta phone
    number id is configured, otherwise the Meta Graph API.
    """

    task_type = NodeKind.WHATSAPP
    display_name = "WhatsApp"
    description = "Send WhatsApp messages"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        credentials = await self.get_credentials(context, IntegrationType.WHATSAPP)
        if not credentials:
            raise ConnectorError("WhatsApp integration not configured")

        phone_number = self.interpolator.interpolate_string(config.get("phoneNumber") or "", context)
        message = self.interpolator.interpolate_string(config.get("message") or "", context)
        if not phone_number or not message:
            raise NodeConfigMissing("WhatsApp node requires phoneNumber and message")

        if credentials.get("provider") == "twilio":
            return await self._send_twilio(credentials, phone_number, message)
        if credentials.get("webhookUrl") and not credentials.get("phoneNumberId"):
            return await self._send_webhook(credentials, phone_number, message)
        return await self._send_meta(credentials, phone_number, message)

    async def _send_twilio(self, credentials: dict, phone_number: str, message: str) -> dict:
        account_sid = credentials.get("accountSid")
        auth_token = credentials.get("authToken") or credentials.get("apiKey")
        if not account_sid or not auth_token:
            raise ConnectorError("Twilio WhatsApp requires accountSid and authToken")

        to = phone_number if phone_number.startswith("whatsapp:") else f"whatsapp:{phone_number}"
        form = {
            "From": credentials.get("fromNumber") or DEFAULT_TWILIO_WHATSAPP_FROM,
            "To": to,
            "Body": message,
        }
        async with self.http_client() as client:
            response = await client.post(_twilio_url(account_sid), data=form, auth=(account_sid, auth_token))

        body = parse_response_body(response)
        if response.is_error:
            raise ConnectorError(f"Twilio WhatsApp error ({response.status_code}): {_error_detail(body)}")
        return {
            "success": True,
            "provider": "twilio",
            "phoneNumber": phone_number,
            "message": message,
            "messageId": body.get("sid") if isinstance(body, dict) else None,
        }

    async def _send_webhook(self, credentials: dict, phone_number: str, message: str) -> dict:
        validate_http_target(credentials["webhookUrl"], self.deps.settings.http_allowlist)

        headers = {}
        if credentials.get("apiKey"):
            headers["Authorization"] = f"Bearer {credentials['apiKey']}"

        async with self.http_client() as client:
            response = await client.post(
                credentials["webhookUrl"],
                json={"to": phone_number, "message": message},
                headers=headers,
            )

        if response.is_error:
            raise ConnectorError(f"WhatsApp webhook error ({response.status_code}): {response.text}")
        return {
            "success": True,
            "provider": "webhook",
            "phoneNumber": phone_number,
            "message": message,
        }

    async def _send_meta(self, credentials: dict, phone_number: str, message: str) -> dict:
        access_token = credentials.get("accessToken") or credentials.get("authToken")
        phone_number_id = str(credentials.get("phoneNumberId") or "")
        if not access_token or not phone_number_id:
            raise ConnectorError("WhatsApp integration not properly configured")
        if not PHONE_NUMBER_ID_RE.match(phone_number_id):
            raise ConnectorError("Invalid WhatsApp phoneNumberId")

        api_version = credentials.get("apiVersion") or DEFAULT_WHATSAPP_API_VERSION
        url = f"{META_GRAPH_BASE}/{api_version}/{phone_number_id}/messages"
        recipient = phone_number.replace(" ", "").replace("+", "")
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {"body": message},
        }

        async with self.http_client() as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {access_token}"},
            )

        body = parse_response_body(response)
        if not isinstance(body, dict):
            body = {"raw": body}
        if response.is_error:
            raise ConnectorError(f"WhatsApp Meta API error ({response.status_code}): {_error_detail(body)}")

        messages = body.get("messages") or [{}]
        return {
            "success": True,
            "provider": "meta",
            "phoneNumber": phone_number,
            "message": message,
            "messageId": messages[0].get("id"),
            "metaResponse": body,
        }


class TelegramTask(BaseTask):
    """Send a Telegram message through the Bot API."""

    task_type = NodeKind.TELEGRAM
    display_name = "Telegram"
    description = "Send Telegram bot messages"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        bot_token = config.get("botToken")
        if not bot_token:
            credentials = await self.get_credentials(context, IntegrationType.TELEGRAM)
            bot_token = (credentials or {}).get("botToken") or self.deps.settings.TELEGRAM_BOT_TOKEN
        if not bot_token:
            raise ConnectorError("Telegram bot token not configured")

        chat_id = self.interpolator.interpolate_string(str(config.get("chatId") or ""), context)
        message = self.interpolator.interpolate_string(config.get("message") or "", context)
        if not chat_id or not message:
            raise NodeConfigMissing("Telegram node requires chatId and message")

        payload = {
            "chat_id": chat_id,
            "text": message,
            "parse_mode": config.get("parseMode") or "HTML",
        }
        try:
            async with self.http_client() as client:
                response = await client.post(f"{TELEGRAM_API_BASE}/bot{bot_token}/sendMessage", json=payload)
        except httpx.HTTPError as e:
            raise ConnectorError(f"Telegram request failed: {e}")

        body = parse_response_body(response)
        if response.is_error or (isinstance(body, dict) and body.get("ok") is False):
            raise ConnectorError(f"Telegram API error: {_error_detail(body)}")

        result = body.get("result") or {}
        return {
            "success": True,
            "messageId": result.get("message_id"),
            "chatId": chat_id,
        }


class SlackTask(BaseTask):
    """Post a message to a Slack incoming webhook."""

    task_type = NodeKind.SLACK
    display_name = "Slack"
    description = "Post messages to Slack"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        webhook_url = config.get("webhookUrl")
        if not webhook_url:
            credentials = await self.get_credentials(context, IntegrationType.SLACK)
            webhook_url = (credentials or {}).get("webhookUrl") or self.deps.settings.SLACK_WEBHOOK_URL
        if not webhook_url:
            raise ConnectorError("No Slack webhook URL configured")
        validate_http_target(webhook_url, self.deps.settings.http_allowlist)

        channel = self.interpolator.interpolate_string(config.get("channel") or "", context)
        message = self.interpolator.interpolate_string(config.get("message") or "", context)
        if not message:
            raise NodeConfigMissing("Slack node missing message")

        payload = {
            "text": message,
            "username": config.get("username") or "Workflow Bot",
        }
        if channel:
            payload["channel"] = channel

        try:
            async with self.http_client() as client:
                response = await client.post(webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise ConnectorError(f"Slack request failed: {e}")

        if response.is_error:
            raise ConnectorError(f"Slack webhook error ({response.status_code}): {response.text}")

        logger.info("Slack message sent", channel=channel or None)
        return {
            "success": True,
            "channel": channel or None,
            "message": message,
        }


class SmsTask(BaseTask):
    """Send an SMS through Twilio or a generic SMS webhook."""

    task_type = NodeKind.SMS
    display_name = "SMS"
    description = "Send SMS messages"

    async def execute(self, config: Dict[str, Any], context: ExecutionContext) -> Any:
        credentials = await self.get_credentials(context, IntegrationType.SMS)
        if not credentials:
            raise ConnectorError("SMS integration not configured")

        phone_number = self.interpolator.interpolate_string(config.get("phoneNumber") or "", context)
        message = self.interpolator.interpolate_string(config.get("message") or "", context)
        if not phone_number or not message:
            raise NodeConfigMissing("SMS node requires phoneNumber and message")

        if credentials.get("provider") == "twilio":
            account_sid = credentials.get("accountSid")
            auth_token = credentials.get("authToken") or credentials.get("apiKey")
            if not account_sid or not auth_token:
                raise ConnectorError("Twilio SMS requires accountSid and authToken")

            form = {
                "From": credentials.get("fromNumber") or "",
                "To": phone_number,
                "Body": message,
            }
            async with self.http_client() as client:
                response = await client.post(_twilio_url(account_sid), data=form, auth=(account_sid, auth_token))

            body = parse_response_body(response)
            if response.is_error:
                raise ConnectorError(f"Twilio SMS error ({response.status_code}): {_error_detail(body)}")
            return {
                "success": True,
                "provider": "twilio",
                "phoneNumber": phone_number,
                "messageId": body.get("sid") if isinstance(body, dict) else None,
            }

        if credentials.get("webhookUrl"):
            validate_http_target(credentials["webhookUrl"], self.deps.settings.http_allowlist)
            headers = {}
            if credentials.get("apiKey"):
                headers["Authorization"] = f"Bearer {credentials['apiKey']}"
            async with self.http_client() as client:
                response = await client.post(
                    credentials["webhookUrl"],
                    json={"to": phone_number, "message": message},
                    headers=headers,
                )
            if response.is_error:
                raise ConnectorError(f"SMS webhook error ({response.status_code}): {response.text}")
            return {
                "success": True,
                "provider": "webhook",
                "phoneNumber": phone_number,
            }

        raise ConnectorError("SMS integration not properly configured")


# Export for task registry
MESSAGING_TASK_TYPES = {
    NodeKind.WHATSAPP: WhatsAppTask,
    NodeKind.TELEGRAM: TelegramTask,
    NodeKind.SLACK: SlackTask,
    NodeKind.SMS: SmsTask,
}
