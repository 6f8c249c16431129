"""Operator-configured HTTP-JSON provider."""
from typing import Any

from dreamcanvas.core.errors import ProviderError
from dreamcanvas.models.generation import GenerationResult, ProviderName
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest


class GenericProvider(ImageProvider):
    """POSTs ``{prompt, aspect_ratio}`` to ``endpoint_url``.

    The auth header is ``header_name: header_template`` with ``{key}`` replaced
    by the credential, e.g. ``Authorization: Bearer {key}`` or ``x-api-key: {key}``.
    A template without ``{key}`` describes an endpoint that needs no credential;
    an empty template or header name sends no auth header at all.
    """

    name = ProviderName.generic
    label = "Provider"

    @property
    def requires_credential(self) -> bool:
        return "{key}" in self.config.header_template

    @property
    def has_credential(self) -> bool:
        return bool(self.config.credential) or not self.requires_credential

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        value = self.config.header_template.replace("{key}", self.config.credential)
        if self.config.header_name and value:
            headers[self.config.header_name] = value
        return headers

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        return {"prompt": request.prompt, "aspect_ratio": request.aspect.value}

    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        if not self.config.endpoint_url:
            raise ProviderError("Generic provider URL is not configured")
        response = await self._send(
            "POST",
            self.config.endpoint_url,
            json=self.build_payload(request),
            headers=self.headers,
        )
        data = self._json(response)
        return self.result(request, self._extract(data, response.text))
