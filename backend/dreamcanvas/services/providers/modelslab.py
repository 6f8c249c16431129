"""ModelsLab realtime text2img: one synchronous JSON call."""
from typing import Any, Optional

from dreamcanvas.core.errors import ProviderError
from dreamcanvas.models.generation import GenerationResult, ProviderName
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest

_ERROR_STATUSES = {"error", "failed"}


class ModelsLabProvider(ImageProvider):
    """The API key travels in the JSON body, which is what ModelsLab documents."""

    name = ProviderName.modelslab
    label = "ModelsLab"

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.config.credential,
            "model_id": self.config.model,
            "prompt": request.prompt,
            "negative_prompt": request.negative_prompt,
            "width": request.dimensions.width,
            "height": request.dimensions.height,
            "samples": 1,
            "guidance_scale": request.guidance_scale,
        }
        if request.seed is not None:
            payload["seed"] = request.seed
        return payload

    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        response = await self._send(
            "POST",
            self.config.endpoint_url,
            json=self.build_payload(request),
            headers={"Accept": "application/json"},
        )
        data = self._json(response)

        # ModelsLab reports some failures with HTTP 200 and a status field.
        if isinstance(data, dict) and str(data.get("status", "")).lower() in _ERROR_STATUSES:
            message = data.get("message") or "unknown error"
            raise ProviderError(
                self.redact(f"ModelsLab error: {message}"),
                upstream_status=response.status_code,
                raw_body=self.redact(response.text),
            )

        image_url = self._extract(data, response.text)
        return self.result(request, image_url, seed=_provider_seed(data))


def _provider_seed(data: Any) -> Optional[int]:
    if not isinstance(data, dict):
        return None
    meta = data.get("meta")
    seed = meta.get("seed") if isinstance(meta, dict) else None
    return seed if isinstance(seed, int) else None
