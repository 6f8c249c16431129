"""Stability AI stable-image endpoint: multipart request, raw image bytes back."""
from typing import Any, Optional

from dreamcanvas.core.errors import NoImageReturned
from dreamcanvas.models.generation import GenerationResult, ProviderName
from dreamcanvas.services.normalizer import to_data_url
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest

_MIME_BY_FORMAT = {"png": "image/png", "jpeg": "image/jpeg", "jpg": "image/jpeg", "webp": "image/webp"}


class StabilityProvider(ImageProvider):
    name = ProviderName.stability
    label = "Stability"

    @property
    def output_format(self) -> str:
        fmt = self.config.output_format.lower()
        return fmt if fmt in _MIME_BY_FORMAT else "png"

    def build_form(self, request: ProviderRequest) -> dict[str, Any]:
        form: dict[str, Any] = {
            "prompt": request.prompt,
            "aspect_ratio": request.aspect.value,
            "output_format": self.output_format,
            "negative_prompt": request.negative_prompt,
        }
        if request.seed is not None:
            form["seed"] = str(request.seed)
        return form

    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        response = await self._send(
            "POST",
            self.config.endpoint_url,
            headers={
                "Authorization": f"Bearer {self.config.credential}",
                "Accept": "image/*",
            },
            data=self.build_form(request),
            # An empty file part forces multipart/form-data encoding.
            files={"none": ""},
        )

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        seed = _header_seed(response.headers.get("seed"))
        if content_type.startswith("image/"):
            if not response.content:
                raise NoImageReturned(self.label)
            return self.result(request, to_data_url(response.content, content_type), seed=seed)

        # Some deployments answer with JSON artifacts instead of bytes.
        data = self._json(response)
        image_url = self._extract(data, response.text, _MIME_BY_FORMAT[self.output_format])
        return self.result(request, image_url, seed=seed)


def _header_seed(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None
