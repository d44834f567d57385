from fastapi import APIRouter
import time
import requests

from ugcvideo.services.supabase_client import supabase
from ugcvideo.utils import config
from ugcvideo.utils.logger import get_logger


router = APIRouter(prefix="/status", tags=["status"])
logger = get_logger("status")

_started_at = time.time()


@router.get("")
def service_status():
    uptime_s = int(time.time() - _started_at)
    status = {
        "status": "ok",
        "uptime": f"{uptime_s}s",
        "n8n_integration": "enabled" if config.ENABLE_N8N_INTEGRATION else "disabled",
        "webhook": "not_configured",
        "supabase": "not_configured",
    }
    # Webhook host: anything below 500 means the workflow engine answered
    if config.N8N_WEBHOOK_URL:
        try:
            r = requests.get(config.N8N_WEBHOOK_URL, timeout=3)
            status["webhook"] = "ok" if r.status_code < 500 else "down"
        except requests.RequestException as e:
            logger.warning("Webhook unreachable: %s", e)
            status["webhook"] = "down"
    try:
        if supabase():
            status["supabase"] = "ok"
    except Exception as e:  # noqa: BLE001
        logger.warning("Supabase client failed: %s", e)
        status["supabase"] = "down"
    return status
