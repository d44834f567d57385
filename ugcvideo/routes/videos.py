import time
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ugcvideo.models.video_schema import VideoFormData, SubmissionAccepted
from ugcvideo.services.orchestrator import VideoSubmissionOrchestrator
from ugcvideo.utils import config
from ugcvideo.utils.logger import get_logger


router = APIRouter(prefix="/videos", tags=["videos"])
logger = get_logger("videos")

# session_id -> orchestrator driving it
_sessions: dict[str, VideoSubmissionOrchestrator] = {}


def orchestrator_factory() -> Callable[[], VideoSubmissionOrchestrator]:
    return VideoSubmissionOrchestrator


def evict_finished(now: Optional[float] = None) -> list[str]:
    """Close and forget sessions that finished more than SESSION_TTL seconds ago."""
    now = time.monotonic() if now is None else now
    expired = [
        sid for sid, orch in _sessions.items()
        if not orch.is_submitting and orch.finished_at is not None
        and now - orch.finished_at >= config.SESSION_TTL
    ]
    for sid in expired:
        _sessions.pop(sid).close()
    if expired:
        logger.info("Evicted %d finished session(s)", len(expired))
    return expired


def _get(session_id: str) -> VideoSubmissionOrchestrator:
    orch = _sessions.get(session_id)
    if orch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown session {session_id}")
    return orch


@router.post("", status_code=status.HTTP_202_ACCEPTED, response_model=SubmissionAccepted)
async def submit_video(form: VideoFormData, factory=Depends(orchestrator_factory)):
    if not config.ENABLE_N8N_INTEGRATION:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Video workflow integration is disabled")

    evict_finished()
    orch = factory()
    session_id = await orch.submit(form)
    if session_id is None:
        result = orch.result
        if result is not None and result.field_errors:
            raise HTTPException(
                status_code=422,
                detail={"message": result.message, "field_errors": result.field_errors},
            )
        orch.close()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.message if result else "Submission failed",
        )

    _sessions[session_id] = orch
    return SubmissionAccepted(session_id=session_id, state=orch.result)


@router.get("/{session_id}")
async def get_video(session_id: str):
    evict_finished()
    return _get(session_id).snapshot()


@router.delete("/{session_id}")
async def reset_video(session_id: str):
    orch = _get(session_id)
    orch.close()
    _sessions.pop(session_id, None)
    logger.info("Session %s reset", session_id)
    return {"status": "reset", "session_id": session_id}
