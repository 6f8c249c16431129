"""OpenAI-compatible /images/generations endpoint."""
from typing import Any

from dreamcanvas.models.generation import Dimensions, GenerationResult, ProviderName
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest

SIZE_SQUARE = "1024x1024"
SIZE_LANDSCAPE = "1792x1024"
SIZE_PORTRAIT = "1024x1792"


def openai_size(dimensions: Dimensions) -> str:
    """Snap arbitrary dimensions to one of the sizes the API accepts."""
    ratio = dimensions.width / dimensions.height
    if ratio >= 1.25:
        return SIZE_LANDSCAPE
    if ratio <= 0.8:
        return SIZE_PORTRAIT
    return SIZE_SQUARE


class OpenAIProvider(ImageProvider):
    name = ProviderName.openai
    label = "OpenAI"

    @property
    def generations_url(self) -> str:
        return f"{self.config.endpoint_url.rstrip('/')}/images/generations"

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "prompt": request.prompt,
            "n": 1,
            "size": openai_size(request.dimensions),
        }

    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        response = await self._send(
            "POST",
            self.generations_url,
            json=self.build_payload(request),
            headers={"Authorization": f"Bearer {self.config.credential}"},
        )
        data = self._json(response)
        # data[0].url when hosted, data[0].b64_json (PNG) otherwise.
        return self.result(request, self._extract(data, response.text, "image/png"))
