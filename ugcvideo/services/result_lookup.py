"""
result_lookup.py – "fetch result by session" collaborators for the poller.

Each lookup is an awaitable ``lookup(session_id) -> PollOutcome``. Transport
problems are raised as PollingTransportError so the poller can count them;
everything the collaborator actually answered is folded into a PollOutcome.
"""

import asyncio
import json
from typing import Any, Callable, Optional

import httpx

from ugcvideo.models.video_schema import PollOutcome
from ugcvideo.services import supabase_client
from ugcvideo.services.errors import PollingTransportError
from ugcvideo.utils.config import RESULT_LOOKUP_URL, HTTP_TIMEOUT
from ugcvideo.utils.logger import get_logger


logger = get_logger("result-lookup")

PENDING_STATUSES = {"pending", "processing", "queued", "running", "waiting"}
FAILED_STATUSES = {"failed", "error", "cancelled", "canceled"}


def classify_result(body: Any) -> PollOutcome:
    """Fold a collaborator answer into pending / completed / failed."""
    if body is None or body == "" or body == {} or body == []:
        return PollOutcome.pending()
    if isinstance(body, list):
        body = body[0]
    if not isinstance(body, dict):
        return PollOutcome.completed(body)
    if body.get("found") is False:
        return PollOutcome.pending()
    status = str(body.get("status") or "").strip().lower()
    if status in PENDING_STATUSES:
        return PollOutcome.pending()
    if status in FAILED_STATUSES:
        reason = body.get("error") or body.get("message") or f"Workflow reported status '{status}'"
        return PollOutcome.failed(str(reason))
    return PollOutcome.completed(body)


class HttpResultLookup:
    """GET <url>?sessionId=<id> against a result endpoint exposed by the workflow."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or RESULT_LOOKUP_URL
        self.timeout = timeout
        self._transport = transport

    async def __call__(self, session_id: str) -> PollOutcome:
        if not self.url:
            raise PollingTransportError("Result lookup URL is not configured (RESULT_LOOKUP_URL)")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(self.url, params={"sessionId": session_id})
        except httpx.HTTPError as e:
            raise PollingTransportError(f"Result lookup failed: {e}") from e

        if r.status_code in (204, 404):
            return PollOutcome.pending()
        if not r.is_success:
            raise PollingTransportError(f"Result lookup HTTP {r.status_code}: {r.reason_phrase}")

        text = r.text.strip()
        try:
            body = json.loads(text) if text else None
        except ValueError:
            body = text
        return classify_result(body)


class SupabaseResultLookup:
    """Reads the row the workflow writes into the video results table."""

    def __init__(self, fetch: Callable[[str], Optional[dict]] = supabase_client.fetch_video_result):
        self._fetch = fetch

    async def __call__(self, session_id: str) -> PollOutcome:
        try:
            row = await asyncio.to_thread(self._fetch, session_id)
        except Exception as e:  # noqa: BLE001
            raise PollingTransportError(f"Result lookup failed: {e}") from e
        if not row:
            return PollOutcome.pending()
        outcome = classify_result(row)
        if outcome.status == "completed":
            # workflow stores the interesting part under result; keep video_url visible
            result = row.get("result")
            if isinstance(result, str):
                try:
                    result = json.loads(result)
                except ValueError:
                    pass
            payload = {"videoUrl": row.get("video_url"), "result": result} if row.get("video_url") else (result or row)
            return PollOutcome.completed(payload)
        return outcome


def default_lookup():
    if RESULT_LOOKUP_URL:
        logger.info("Polling results over HTTP: %s", RESULT_LOOKUP_URL)
        return HttpResultLookup()
    logger.info("Polling results from Supabase table")
    return SupabaseResultLookup()
