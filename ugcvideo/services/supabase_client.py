from typing import Optional, Any

from supabase import create_client, Client

from ugcvideo.utils.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, VIDEO_RESULTS_TABLE, USERS_TABLE
from ugcvideo.utils.logger import get_logger


logger = get_logger("supabase-client")


_client: Optional[Client] = None


def supabase() -> Optional[Client]:
    global _client
    if _client:
        return _client
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        logger.info("Supabase not configured; result and profile lookups disabled.")
        return None
    _client = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _client


def fetch_video_result(session_id: str, table: str = VIDEO_RESULTS_TABLE) -> Optional[dict[str, Any]]:
    """Newest result row written by the workflow for this session, or None."""
    sb = supabase()
    if not sb:
        raise RuntimeError("Supabase not configured: set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
    res = (
        sb.table(table)
        .select("*")
        .eq("session_id", session_id)
        .order("created_at", desc=True)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None


def fetch_user(user_id: str, table: str = USERS_TABLE) -> Optional[dict[str, Any]]:
    sb = supabase()
    if not sb:
        return None
    res = sb.table(table).select("id, name, email, balance").eq("id", user_id).limit(1).execute()
    rows = res.data or []
    return rows[0] if rows else None
