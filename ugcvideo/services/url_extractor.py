"""
url_extractor.py – find a playable video link inside a workflow result.

Results come back as plain text, JSON, or prose with JSON embedded in it, so
extraction is a short list of regex passes tried in order. The bare-URL pass
runs first; the keyed JSON passes are consulted only when it finds nothing.
"""

import json
import re
from typing import Any, Optional

from ugcvideo.utils.logger import get_logger


logger = get_logger("url-extractor")

VIDEO_EXTS = ("mp4", "avi", "mov", "wmv", "flv", "webm", "mkv")
RESULT_LINK_KEYS = (
    "videoUrl",
    "finalvideoURL",
    "finalvideourl",
    "video_url",
    "videoLink",
    "downloadUrl",
    "fileUrl",
    "mediaUrl",
)

_EXT = "|".join(VIDEO_EXTS)

URL_PATTERNS = [
    # bare video URL anywhere in the text
    re.compile(r"https?://[^\s\"'<>]+\.(?:%s)" % _EXT, re.IGNORECASE),
    # "videoUrl": "..." and friends
    re.compile(
        r"\"(?:%s)\"?\s*:\s*\"([^\"]+)\"" % "|".join(re.escape(k) for k in RESULT_LINK_KEYS),
        re.IGNORECASE,
    ),
    # "text"/"output" fields carrying a video URL
    re.compile(
        r"\"(?:text|output)\"?\s*:\s*\"(https?://[^\s\"'<>]+\.(?:%s)[^\"]*)\"" % _EXT,
        re.IGNORECASE,
    ),
]


def _is_http(url: str) -> bool:
    return url[:8].lower().startswith(("http://", "https://"))


def extract_video_url(text: Optional[str]) -> Optional[str]:
    """Return the first http(s) media URL found by the ordered passes, else None."""
    if not text:
        return None
    for pattern in URL_PATTERNS:
        for match in pattern.finditer(text):
            url = match.group(1) if pattern.groups else match.group(0)
            if url and _is_http(url):
                logger.debug("Video URL found by pass %d: %s", URL_PATTERNS.index(pattern) + 1, url)
                return url
    return None


def direct_video_url(payload: Any) -> Optional[str]:
    """The payload's own http ``videoUrl``, taken verbatim (query string included)."""
    if isinstance(payload, dict):
        url = payload.get("videoUrl")
        if isinstance(url, str) and _is_http(url.strip()):
            return url.strip()
    return None


def resolve_video_url(payload: Any) -> Optional[str]:
    return direct_video_url(payload) or extract_video_url(payload_to_text(payload))


def payload_to_text(payload: Any) -> str:
    """Searchable text for a completed payload."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(payload)


def pretty_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(payload)
