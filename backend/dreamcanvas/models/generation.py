"""Image generation data models."""
import time
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AspectRatio(str, Enum):
    """Closed set of output proportions."""

    square = "1:1"
    landscape = "16:9"
    portrait = "9:16"


class ProviderName(str, Enum):
    """Supported third-party text-to-image providers."""

    modelslab = "modelslab"
    stability = "stability"
    replicate = "replicate"
    generic = "generic"
    openai = "openai-compatible"
    gemini = "gemini"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ProviderName"]:
        # Accept "openai", "OpenAI_Compatible" and similar spellings.
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-")
        if key == "openai":
            return cls.openai
        for member in cls:
            if member.value == key:
                return member
        return None


class GenerationRequest(BaseModel):
    """Body of POST /ai/generate.

    ``aspect`` and ``style`` are kept as free text here; the resolvers map
    them onto the closed sets. An empty prompt is rejected by the
    orchestrator so it surfaces as a 400 rather than a schema error.
    """

    prompt: str = Field(
        default="",
        validation_alias=AliasChoices("prompt", "description", "text"),
    )
    aspect: str = "1:1"
    style: str = "realistic"
    seed: Optional[int] = None


class StyleProfile(BaseModel):
    """Prompt-engineering bundle attached to a named style."""

    model_config = ConfigDict(frozen=True)

    prompt_prefix: str
    negative_prompt: str
    guidance_scale: float = Field(..., gt=0)


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class ProviderConfig(BaseModel):
    """Provider selection and credentials, resolved once at startup."""

    model_config = ConfigDict(frozen=True)

    name: ProviderName
    credential: str = ""
    endpoint_url: str = ""
    model: Optional[str] = None
    poll_interval: float = Field(default=1.0, gt=0)
    poll_timeout: float = Field(default=90.0, gt=0)
    header_name: str = "Authorization"
    header_template: str = "Bearer {key}"
    output_format: str = "png"


class JobStatus(str, Enum):
    pending = "pending"
    succeeded = "succeeded"
    failed = "failed"
    canceled = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.pending


class GenerationJob(BaseModel):
    """Handle on an asynchronous provider job, mutated only by the poller."""

    id: str
    poll_url: str
    status: JobStatus = JobStatus.pending
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: float = Field(default_factory=time.monotonic)


class GenerationResult(BaseModel):
    """Normalized response returned to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., alias="imageUrl")
    aspect: str
    style: Optional[str] = None
    seed: Optional[int] = None


class ErrorResponse(BaseModel):
    """Failure body; only ``error`` is always present."""

    error: str
    rawPreview: Optional[str] = None
    upstreamStatus: Optional[int] = None
    donationUrl: Optional[str] = None
