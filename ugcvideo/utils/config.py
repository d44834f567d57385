import os
from dotenv import load_dotenv

load_dotenv(override=False)


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v not in (None, "", "null", "None") else default


def _flag(name: str, default: bool) -> bool:
    v = _env(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


N8N_WEBHOOK_URL = _env("N8N_WEBHOOK_URL")
ENABLE_N8N_INTEGRATION = _flag("ENABLE_N8N_INTEGRATION", True)

# Optional HTTP endpoint answering "result for sessionId"; Supabase is used when unset.
RESULT_LOOKUP_URL = _env("RESULT_LOOKUP_URL")


SUPABASE_URL = _env("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = _env("SUPABASE_SERVICE_ROLE_KEY")
VIDEO_RESULTS_TABLE = _env("VIDEO_RESULTS_TABLE", "video_results")
USERS_TABLE = _env("USERS_TABLE", "users")


POLL_INTERVAL = float(_env("POLL_INTERVAL", "5") or "5")
POLL_INITIAL_DELAY = float(_env("POLL_INITIAL_DELAY", "0") or "0")
POLL_MAX_RETRIES = int(_env("POLL_MAX_RETRIES", "3") or "3")
POLL_MAX_DURATION = float(_env("POLL_MAX_DURATION", "900") or "900")
HTTP_TIMEOUT = float(_env("HTTP_TIMEOUT", "30") or "30")

# Finished sessions are dropped from the in-memory registry after this many seconds.
SESSION_TTL = float(_env("SESSION_TTL", "3600") or "3600")


HOST = _env("HOST", "0.0.0.0")
PORT = int(_env("PORT", "8080") or "8080")
