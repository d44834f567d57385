import time
from typing import Any, Callable, Mapping, Optional, Union

from ugcvideo.models.video_schema import SubmitResult, VideoFormData
from ugcvideo.services.errors import PollingError, SubmissionError, ValidationError
from ugcvideo.services.result_lookup import default_lookup
from ugcvideo.services.result_poller import Lookup, ResultPoller, PollerState
from ugcvideo.services.url_extractor import resolve_video_url, pretty_payload
from ugcvideo.services.video_form import validate_form, format_chat_input, new_session_id
from ugcvideo.services.webhook_client import WebhookClient
from ugcvideo.utils.logger import get_logger, session_logger


logger = get_logger("orchestrator")

StateListener = Callable[[Optional[SubmitResult]], None]


class VideoSubmissionOrchestrator:
    """
    Owns one user-facing submission: validate, fire the webhook, poll for the
    result and publish every state change to ``on_change``. Only one submission
    is in flight at a time; duplicates are ignored until it finishes or reset().
    """

    def __init__(
        self,
        webhook: Optional[WebhookClient] = None,
        lookup: Optional[Lookup] = None,
        on_change: Optional[StateListener] = None,
        **poll_options: Any,
    ):
        self._webhook = webhook or WebhookClient()
        self._poller = ResultPoller(
            lookup or default_lookup(),
            on_result=self._on_poll_result,
            on_error=self._on_poll_error,
            **poll_options,
        )
        self._on_change = on_change
        self.session_id: Optional[str] = None
        self.result: Optional[SubmitResult] = None
        self.is_submitting = False
        self._closed = False
        # monotonic time the last session reached a terminal state
        self.finished_at: Optional[float] = None

    @property
    def poller(self) -> ResultPoller:
        return self._poller

    async def submit(self, data: Union[VideoFormData, Mapping[str, Any]]) -> Optional[str]:
        """Returns the new session id once the webhook accepted the request, else None."""
        if self._closed:
            logger.warning("submit() on a closed orchestrator ignored")
            return None
        if self.is_submitting:
            logger.info("Submission already in flight (%s); ignoring duplicate", self.session_id)
            return None

        try:
            form = validate_form(data)
        except ValidationError as e:
            logger.info("Form rejected: %s", e)
            self._publish(SubmitResult(
                success=False,
                message="Please correct the highlighted fields",
                field_errors=e.field_errors,
            ))
            return None

        self.is_submitting = True
        self.finished_at = None
        if self._poller.state is not PollerState.IDLE:
            self._poller.stop()
            self._poller.reset()
        session_id = new_session_id()
        self.session_id = session_id
        log = session_logger(logger, session_id)
        self._publish(SubmitResult(
            success=True,
            message="Request sent, the AI is creating your video...",
            is_processing=True,
        ))

        try:
            ack = await self._webhook.send_message(session_id, format_chat_input(form))
        except Exception as e:  # noqa: BLE001
            error = e if isinstance(e, SubmissionError) else SubmissionError(str(e))
            if self.session_id != session_id:
                return None
            log.error("Submission failed: %s", error.reason)
            self.is_submitting = False
            self.finished_at = time.monotonic()
            self._publish(SubmitResult(
                success=False,
                message=f"Request failed: {error.reason}",
                response=error.reason,
            ))
            return None

        if self.session_id != session_id or self._closed:
            log.info("Session reset while submitting; not polling")
            return None

        log.info("Submission accepted; waiting for result")
        self._publish(SubmitResult(
            success=True,
            message=ack.get("message") or "Request received, generating video...",
            response=pretty_payload(ack),
            is_processing=True,
        ))
        self._poller.start(session_id)
        return session_id

    def reset(self) -> None:
        self._poller.stop()
        self._poller.reset()
        self.session_id = None
        self.is_submitting = False
        self.finished_at = None
        self._publish(None)

    def close(self) -> None:
        """Reset and stop publishing; late callbacks are dropped."""
        self.reset()
        self._closed = True

    def snapshot(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "is_submitting": self.is_submitting,
            "poller_state": self._poller.state.value,
            "result": self.result.model_dump() if self.result else None,
        }

    def _on_poll_result(self, session_id: str, payload: Any) -> None:
        if self._is_stale(session_id):
            return
        video_url = resolve_video_url(payload)
        if video_url:
            session_logger(logger, session_id).info("Video ready: %s", video_url)
            result = SubmitResult(
                success=True,
                message="Video generation complete!",
                response=pretty_payload(payload),
                video_url=video_url,
            )
        else:
            session_logger(logger, session_id).warning("No video URL in result; showing raw payload")
            result = SubmitResult(
                success=True,
                message="Result received, please check the details",
                response=pretty_payload(payload),
            )
        self.is_submitting = False
        self.finished_at = time.monotonic()
        self._publish(result)

    def _on_poll_error(self, session_id: str, error: PollingError) -> None:
        if self._is_stale(session_id):
            return
        self.is_submitting = False
        self.finished_at = time.monotonic()
        self._publish(SubmitResult(
            success=False,
            message=f"Video generation failed: {error.reason}",
            response=error.reason,
        ))

    def _is_stale(self, session_id: str) -> bool:
        if self._closed or session_id != self.session_id:
            logger.debug("Dropping stale poller callback for %s", session_id)
            return True
        return False

    def _publish(self, result: Optional[SubmitResult]) -> None:
        if self._closed:
            return
        self.result = result
        if self._on_change is None:
            return
        try:
            self._on_change(result)
        except Exception:  # noqa: BLE001
            logger.exception("State listener raised")
