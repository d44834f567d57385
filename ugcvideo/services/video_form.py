import re
import secrets
import string
import time
from typing import Any, Mapping, Union

from ugcvideo.models.video_schema import VideoFormData, DURATION_CHOICES, GENDER_CHOICES
from ugcvideo.services.errors import ValidationError


IMAGE_URL_RE = re.compile(r"^https?://.+\.(jpg|jpeg|png|webp)(\?.*)?$", re.IGNORECASE)
MIN_DESCRIPTION_LEN = 10

_ALPHABET = string.digits + string.ascii_lowercase
_last_session_id: str | None = None


def is_valid_image_url(url: str | None) -> bool:
    if not url:
        return False
    return bool(IMAGE_URL_RE.match(url.strip()))


def coerce_form(data: Union[VideoFormData, Mapping[str, Any]]) -> VideoFormData:
    if isinstance(data, VideoFormData):
        data = data.model_dump()
    return VideoFormData(**{k: "" if v is None else str(v) for k, v in dict(data).items()
                            if k in VideoFormData.model_fields})


def validate_form(data: Union[VideoFormData, Mapping[str, Any]]) -> VideoFormData:
    """Return the cleaned form or raise ValidationError with one message per bad field."""
    form = coerce_form(data)
    errors: dict[str, str] = {}

    duration = form.duration.strip()
    if not duration:
        errors["duration"] = "Please choose a video duration"
    elif duration not in DURATION_CHOICES:
        errors["duration"] = "Duration must be one of %s seconds" % ", ".join(DURATION_CHOICES)

    description = form.product_description.strip()
    if not description:
        errors["product_description"] = "Please enter a product description"
    elif len(description) < MIN_DESCRIPTION_LEN:
        errors["product_description"] = "Product description needs at least %d characters" % MIN_DESCRIPTION_LEN

    image_url = form.image_url.strip()
    if not image_url:
        errors["image_url"] = "Please enter the product image URL"
    elif not is_valid_image_url(image_url):
        errors["image_url"] = "Image URL must be http(s) and end with .jpg, .jpeg, .png or .webp"

    gender = form.character_gender.strip().lower()
    if not gender:
        errors["character_gender"] = "Please choose the character gender"
    elif gender not in GENDER_CHOICES:
        errors["character_gender"] = "Character gender must be one of %s" % ", ".join(GENDER_CHOICES)

    if errors:
        raise ValidationError(errors)
    return VideoFormData(
        duration=duration,
        product_description=description,
        image_url=image_url,
        character_gender=gender,
    )


def format_chat_input(form: VideoFormData) -> str:
    # The workflow's chat trigger reads these three lines positionally.
    return f"{form.product_description}\n{form.image_url}\n{form.character_gender}"


def new_session_id() -> str:
    """video-<epoch ms>-<9 base36 chars>; never repeats the previous id."""
    global _last_session_id
    while True:
        suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
        sid = f"video-{int(time.time() * 1000)}-{suffix}"
        if sid != _last_session_id:
            _last_session_id = sid
            return sid
