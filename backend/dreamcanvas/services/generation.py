"""GenerationService: orchestrates one image generation."""
import time
from typing import Any, Optional

from dreamcanvas.core.errors import (
    ConcurrencyLimitExceeded,
    GenerationError,
    InvalidRequest,
    ProviderError,
    QuotaExceeded,
    preview,
)
from dreamcanvas.core.logging import setup_logging
from dreamcanvas.models.generation import GenerationRequest, GenerationResult
from dreamcanvas.services.admission import AdmissionController
from dreamcanvas.services.dimensions import resolve_aspect, resolve_dimensions
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest
from dreamcanvas.services.styles import compose_prompt, normalize_style_id, resolve_style

logger = setup_logging("generation")

SELFTEST_PROMPT = "health check"


class GenerationService:
    """Runs one generation through admission, resolution and the provider.

    Responsibilities:
    1. Reject empty prompts before anything else happens
    2. Take the in-flight slot, then reserve the caller's quota
    3. Resolve style and dimensions into a ProviderRequest
    4. Delegate to the provider adapter (sync call or submit+poll)
    5. Commit quota on success only; release the slot on every path

    State notes:
    - The AdmissionController is the only state shared between requests.
    - No retries happen here; failures are reported immediately.
    """

    def __init__(
        self,
        provider: ImageProvider,
        admission: AdmissionController,
        donation_url: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self.admission = admission
        self.donation_url = donation_url

    @staticmethod
    def build_provider_request(request: GenerationRequest) -> ProviderRequest:
        profile = resolve_style(request.style)
        return ProviderRequest(
            prompt=compose_prompt(profile, request.prompt),
            negative_prompt=profile.negative_prompt,
            guidance_scale=profile.guidance_scale,
            style=normalize_style_id(request.style),
            aspect=resolve_aspect(request.aspect),
            dimensions=resolve_dimensions(request.aspect),
            seed=request.seed,
        )

    async def handle(self, request: GenerationRequest, caller_key: str) -> GenerationResult:
        """Generate one image for ``caller_key``.

        Raises:
            InvalidRequest: Prompt is empty after trimming.
            ConcurrencyLimitExceeded: Another generation is in flight.
            QuotaExceeded: The caller used up today's allowance.
            MissingCredential / ProviderError / NoImageReturned / GenerationTimeout:
                Propagated from the provider adapter.
        """
        if not request.prompt.strip():
            raise InvalidRequest("Missing prompt")

        if not self.admission.try_acquire():
            logger.info("Rejected: generation already in flight", extra={"caller": caller_key})
            raise ConcurrencyLimitExceeded()

        quota_reserved = False
        try:
            if not self.admission.try_acquire_quota(caller_key):
                raise QuotaExceeded(donation_url=self.donation_url)
            quota_reserved = True

            result = await self._run(self.build_provider_request(request))

            self.admission.commit_quota(caller_key)
            quota_reserved = False
            return result
        finally:
            if quota_reserved:
                self.admission.release_quota(caller_key)
            self.admission.release()

    async def _run(self, provider_request: ProviderRequest) -> GenerationResult:
        started = time.monotonic()
        try:
            result = await self.provider.generate(provider_request)
        except GenerationError:
            raise
        except Exception as exc:
            logger.error(
                "Generation error",
                exc_info=True,
                extra={"provider": self.provider.name.value},
            )
            raise ProviderError(
                self.provider.redact(f"Image generation failed: {type(exc).__name__}: {exc}")
            ) from exc

        logger.info(
            "Generated image: aspect=%s style=%s",
            result.aspect,
            result.style,
            extra={
                "provider": self.provider.name.value,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return result

    async def selftest(self) -> dict[str, Any]:
        """One-off generation that bypasses admission control.

        Returns:
            ``{"ok", "status", "body"}`` with the upstream status on failure.
        """
        request = GenerationRequest(prompt=SELFTEST_PROMPT)
        try:
            result = await self._run(self.build_provider_request(request))
        except ProviderError as exc:
            return {
                "ok": False,
                "status": exc.upstream_status or exc.status_code,
                "body": preview(exc.raw_body or exc.message, 400),
            }
        except GenerationError as exc:
            return {"ok": False, "status": exc.status_code, "body": exc.message}
        return {"ok": True, "status": 200, "body": preview(result.image_url, 400)}
