import re
from typing import Optional

from ugcvideo.models.video_schema import UserProfile
from ugcvideo.services import supabase_client
from ugcvideo.utils.logger import get_logger


logger = get_logger("user-profile")

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)


def is_valid_uuid(user_id: Optional[str]) -> bool:
    return bool(user_id) and bool(UUID_RE.match(user_id))


def load_profile(user_id: str) -> Optional[UserProfile]:
    """
    Read-only {id, name, balance} view of a user. Callers validate the id
    first; stale cached ids from old sessions are not UUIDs.
    """
    row = supabase_client.fetch_user(user_id)
    if not row:
        logger.info("No user row for %s", user_id)
        return None
    return UserProfile(
        id=str(row["id"]),
        name=row.get("name") or row.get("email"),
        balance=row.get("balance") or 0,
    )
