import json
from typing import Any, Optional

import httpx

from ugcvideo.services.errors import SubmissionError
from ugcvideo.utils.config import N8N_WEBHOOK_URL, HTTP_TIMEOUT
from ugcvideo.utils.logger import get_logger, session_logger


logger = get_logger("webhook-client")


class WebhookClient:
    """Fire-and-forget POST to the workflow engine's chat webhook."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or N8N_WEBHOOK_URL
        self.timeout = timeout
        self._transport = transport

    async def send_message(self, session_id: str, chat_input: str) -> dict[str, Any]:
        """
        POSTs {action, sessionId, chatInput}. Any 2xx is an acceptance; the body
        is informational and returned as parsed JSON (or {"raw_text": ...}).
        """
        log = session_logger(logger, session_id)
        if not self.url:
            raise SubmissionError("Webhook URL is not configured (N8N_WEBHOOK_URL)")

        body = {"action": "sendMessage", "sessionId": session_id, "chatInput": chat_input}
        log.info("Webhook request → %s", self.url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=body)
        except httpx.HTTPError as e:
            log.error("Webhook transport failure: %s", e)
            raise SubmissionError(f"Request failed: {e}") from e

        if not r.is_success:
            log.error("Webhook rejected submission: %s %s", r.status_code, r.reason_phrase)
            raise SubmissionError(f"HTTP {r.status_code}: {r.reason_phrase}", status_code=r.status_code)

        text = r.text.strip()
        if not text:
            return {}
        try:
            data = json.loads(text)
        except ValueError:
            log.warning("Webhook did not return JSON; wrapping as text.")
            return {"raw_text": text}
        return data if isinstance(data, dict) else {"data": data}
