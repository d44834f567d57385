from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any, Literal


DURATION_CHOICES = ("15", "24", "30", "45", "60")
GENDER_CHOICES = ("male", "female", "neutral")


class VideoFormData(BaseModel):
    # Loose on purpose: numbers and nulls reach services.video_form, which reports per-field errors.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    duration: Optional[str] = "24"
    product_description: Optional[str] = ""
    image_url: Optional[str] = ""
    character_gender: Optional[str] = ""


class PollOutcome(BaseModel):
    status: Literal["pending", "completed", "failed"]
    payload: Optional[Any] = None
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "PollOutcome":
        return cls(status="pending")

    @classmethod
    def completed(cls, payload: Any) -> "PollOutcome":
        return cls(status="completed", payload=payload)

    @classmethod
    def failed(cls, reason: str) -> "PollOutcome":
        return cls(status="failed", reason=reason)


class SubmitResult(BaseModel):
    success: bool
    message: str
    response: Optional[str] = None
    video_url: Optional[str] = None
    is_processing: bool = False
    field_errors: dict[str, str] = Field(default_factory=dict)


class SubmissionAccepted(BaseModel):
    session_id: str
    state: SubmitResult


class UserProfile(BaseModel):
    id: str
    name: Optional[str] = None
    balance: float = 0
