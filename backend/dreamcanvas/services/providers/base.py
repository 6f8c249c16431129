"""Base class for provider adapters."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from dreamcanvas.core.errors import (
    MissingCredential,
    NoImageReturned,
    ProviderError,
    preview,
    redact,
)
from dreamcanvas.models.generation import (
    AspectRatio,
    Dimensions,
    GenerationResult,
    ProviderConfig,
    ProviderName,
)
from dreamcanvas.services.normalizer import DEFAULT_MIME, extract_image_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderRequest:
    """Fully resolved generation parameters handed to an adapter."""

    prompt: str
    negative_prompt: str
    guidance_scale: float
    style: str
    aspect: AspectRatio
    dimensions: Dimensions
    seed: Optional[int] = None


class ImageProvider(ABC):
    """One text-to-image backend.

    Subclasses implement ``_generate``; ``generate`` adds the credential check.
    Every error leaving an adapter is a ``GenerationError`` whose text has the
    credential redacted.
    """

    name: ProviderName
    label: str = "Provider"

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient) -> None:
        self.config = config
        self.client = client

    @property
    def has_credential(self) -> bool:
        return bool(self.config.credential)

    async def generate(self, request: ProviderRequest) -> GenerationResult:
        if not self.has_credential:
            raise MissingCredential(self.name.value)
        return await self._generate(request)

    @abstractmethod
    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        ...

    def redact(self, text: str) -> str:
        return redact(text, self.config.credential)

    def result(self, request: ProviderRequest, image_url: str, seed: Optional[int] = None) -> GenerationResult:
        return GenerationResult(
            image_url=image_url,
            aspect=request.aspect.value,
            style=request.style,
            seed=request.seed if request.seed is not None else seed,
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue a request; transport failures and non-2xx become ProviderError."""
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "%s request failed: %s",
                self.label,
                self.redact(str(exc)),
                extra={"provider": self.name.value},
            )
            raise ProviderError(f"{self.label} request failed: {self.redact(str(exc))}") from exc

        if response.is_error:
            body = self.redact(response.text)
            logger.error(
                "[%s FAIL] %d %s",
                self.label,
                response.status_code,
                preview(body, 300),
                extra={"provider": self.name.value, "status_code": response.status_code},
            )
            raise ProviderError(
                f"{self.label} error {response.status_code}",
                upstream_status=response.status_code,
                raw_body=body,
            )
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                f"{self.label} returned malformed JSON",
                upstream_status=response.status_code,
                raw_body=self.redact(response.text),
            ) from exc

    def _extract(self, payload: Any, raw: str, mime_type: str = DEFAULT_MIME) -> str:
        reference = extract_image_reference(payload, mime_type)
        if reference is None:
            body = self.redact(raw)
            logger.error(
                "[%s PARSE] raw: %s",
                self.label,
                preview(body, 400),
                extra={"provider": self.name.value},
            )
            raise NoImageReturned(self.label, body)
        return reference
