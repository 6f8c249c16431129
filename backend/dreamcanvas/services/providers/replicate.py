"""Replicate predictions API: submit a job, then poll until it finishes."""
from typing import Any, Optional

import httpx

from dreamcanvas.core.errors import ProviderError
from dreamcanvas.models.generation import (
    GenerationJob,
    GenerationResult,
    ProviderConfig,
    ProviderName,
)
from dreamcanvas.services.poller import JobPoller, parse_status
from dreamcanvas.services.providers.base import ImageProvider, ProviderRequest


class ReplicateProvider(ImageProvider):
    name = ProviderName.replicate
    label = "Replicate"

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient,
        poller: Optional[JobPoller] = None,
    ) -> None:
        super().__init__(config, client)
        self.poller = poller or JobPoller(
            client,
            interval=config.poll_interval,
            timeout=config.poll_timeout,
            provider=self.label,
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.credential}",
            "Content-Type": "application/json",
        }

    @property
    def predictions_url(self) -> str:
        return f"{self.config.endpoint_url.rstrip('/')}/v1/models/{self.config.model}/predictions"

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        model_input: dict[str, Any] = {
            "prompt": request.prompt,
            "aspect_ratio": request.aspect.value,
        }
        if request.seed is not None:
            model_input["seed"] = request.seed
        return {"input": model_input}

    async def submit(self, request: ProviderRequest) -> GenerationJob:
        """Create the prediction and return a job handle for the poller."""
        response = await self._send(
            "POST",
            self.predictions_url,
            json=self.build_payload(request),
            headers=self.headers,
        )
        data = self._json(response)
        urls = data.get("urls") if isinstance(data, dict) else None
        poll_url = urls.get("get") if isinstance(urls, dict) else None
        if not poll_url or not isinstance(poll_url, str):
            raise ProviderError(
                "Replicate did not return a poll URL",
                upstream_status=response.status_code,
                raw_body=self.redact(response.text),
            )
        return GenerationJob(
            id=str(data.get("id", "")),
            poll_url=poll_url,
            status=parse_status(data.get("status")),
            payload=data,
        )

    async def _generate(self, request: ProviderRequest) -> GenerationResult:
        job = await self.submit(request)
        image_url = await self.poller.wait(
            job,
            headers={"Authorization": f"Bearer {self.config.credential}"},
            secret=self.config.credential,
        )
        return self.result(request, image_url)
