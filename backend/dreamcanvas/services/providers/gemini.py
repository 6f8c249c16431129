"""Gemini image model on Vertex AI via the google-genai SDK."""
from dreamcanvas.core.errors import NoImageReturned, ProviderError
from dreamcanvas.models.generation import GenerationResult, ProviderName
from dreamcanvas.services.normalizer import to_data_url
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest


class GeminiProvider(ImageProvider):
    """The configured credential is the GCP project id; auth comes from ADC."""

    name = ProviderName.gemini
    label = "Gemini"

    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        image_bytes, mime_type = await self._call_image_api(request)
        return self.result(request, to_data_url(image_bytes, mime_type))

    async def _call_image_api(self, request: ProviderRequest) -> tuple[bytes, str]:
        """Call the Gemini image model and return the first inline image part.

        Args:
            request: Resolved generation parameters.

        Returns:
            Raw image bytes and their MIME type.

        Raises:
            ProviderError: The API rejected the call.
            NoImageReturned: The response carried no image part.
        """
        from google import genai  # type: ignore[import-untyped]
        from google.genai import errors, types  # type: ignore[import-untyped]

        # Gemini image models are only served from the global endpoint.
        client = genai.Client(
            vertexai=True,
            project=self.config.credential,
            location="global",
        )

        try:
            response = await client.aio.models.generate_content(
                model=self.config.model,
                contents=request.prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                    image_config=types.ImageConfig(aspect_ratio=request.aspect.value),
                ),
            )
        except errors.APIError as exc:
            raise ProviderError(
                self.redact(f"Gemini error: {exc.message or exc}"),
                upstream_status=exc.code,
            ) from exc

        candidates = response.candidates
        if not candidates or candidates[0].content is None:
            raise NoImageReturned(self.label)

        for part in candidates[0].content.parts or []:
            if getattr(part, "inline_data", None) is not None and part.inline_data.data:
                return bytes(part.inline_data.data), part.inline_data.mime_type or "image/png"

        raise NoImageReturned(self.label)
