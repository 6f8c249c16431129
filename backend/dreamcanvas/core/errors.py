"""Error taxonomy for the generation pipeline.

Every failure a caller can observe is a ``GenerationError`` subclass carrying
the HTTP status it maps to. The exception handlers in ``dreamcanvas.main``
turn them into ``{"error": ..., "rawPreview": ...}`` bodies.
"""
from typing import Any, Optional

PREVIEW_LIMIT = 200
REDACTED = "***"


def redact(text: str, *secrets: Optional[str]) -> str:
    """Replace every occurrence of the given secrets in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def preview(text: str, limit: int = PREVIEW_LIMIT) -> str:
    """Truncate an upstream body for diagnostics."""
    return text[:limit]


class GenerationError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Image generation failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class InvalidRequest(GenerationError):
    status_code = 400
    default_message = "Missing prompt"


class MissingCredential(GenerationError):
    """The active provider has no credential configured."""

    status_code = 401

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Missing credential for provider '{provider}' on server")


class AdmissionRejected(GenerationError):
    status_code = 429
    default_message = "Request rejected, please try again later"


class ConcurrencyLimitExceeded(AdmissionRejected):
    default_message = "Too many concurrent requests: one at a time, please"


class QuotaExceeded(AdmissionRejected):
    """The caller spent their daily allowance."""

    default_message = "Daily quota exceeded, come back tomorrow"

    def __init__(self, message: Optional[str] = None, donation_url: Optional[str] = None) -> None:
        self.donation_url = donation_url
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.donation_url:
            payload["donationUrl"] = self.donation_url
        return payload


class ProviderError(GenerationError):
    """Upstream returned a non-2xx response, a malformed payload, or failed in transport.

    ``raw_body`` must already be redacted by the caller.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        raw_body: str = "",
    ) -> None:
        self.upstream_status = upstream_status
        self.raw_body = raw_body
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.upstream_status is not None:
            payload["upstreamStatus"] = self.upstream_status
        if self.raw_body:
            payload["rawPreview"] = preview(self.raw_body)
        return payload


class NoImageReturned(GenerationError):
    status_code = 502

    def __init__(self, provider: str, raw_body: str = "") -> None:
        self.raw_body = raw_body
        super().__init__(f"{provider} returned no image URL")

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.raw_body:
            payload["rawPreview"] = preview(self.raw_body)
        return payload


class GenerationTimeout(GenerationError, TimeoutError):
    """The asynchronous job did not finish before the poll deadline."""

    status_code = 504
    default_message = "Image generation timed out"
