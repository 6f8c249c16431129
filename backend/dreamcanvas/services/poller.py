"""Async completion poller for submit-then-poll providers."""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from dreamcanvas.core.errors import (
    GenerationTimeout,
    NoImageReturned,
    ProviderError,
    redact,
)
from dreamcanvas.models.generation import GenerationJob, JobStatus
from dreamcanvas.services.normalizer import extract_image_reference

logger = logging.getLogger(__name__)

# Provider status vocabulary -> JobStatus. Unknown values count as pending.
_STATUS_MAP: dict[str, JobStatus] = {
    "starting": JobStatus.pending,
    "processing": JobStatus.pending,
    "pending": JobStatus.pending,
    "queued": JobStatus.pending,
    "succeeded": JobStatus.succeeded,
    "success": JobStatus.succeeded,
    "failed": JobStatus.failed,
    "error": JobStatus.failed,
    "canceled": JobStatus.canceled,
    "cancelled": JobStatus.canceled,
}


def parse_status(value: Any) -> JobStatus:
    return _STATUS_MAP.get(str(value or "").strip().lower(), JobStatus.pending)


class JobPoller:
    """Drives a ``GenerationJob`` to a terminal state.

    The wait between polls suspends only the owning task. The deadline is
    measured from ``job.created_at`` and no request is issued after it has
    passed, even if the provider keeps answering "pending".
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        interval: float = 1.0,
        timeout: float = 90.0,
        provider: str = "provider",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.interval = interval
        self.timeout = timeout
        self.provider = provider
        self._sleep = sleep
        self._clock = clock

    async def wait(
        self,
        job: GenerationJob,
        headers: Optional[dict[str, str]] = None,
        secret: Optional[str] = None,
        mime_type: str = "image/png",
    ) -> str:
        """Poll until the job finishes and return its extracted image reference.

        Raises:
            GenerationTimeout: The deadline passed while the job was pending.
            ProviderError: The job failed/was canceled, or a poll request failed.
            NoImageReturned: The job succeeded without a recognizable image.
        """
        deadline = job.created_at + self.timeout
        polls = 0
        while not job.status.is_terminal:
            if self._clock() >= deadline:
                logger.warning(
                    "Job %s still pending after %.1fs (%d polls)",
                    job.id,
                    self.timeout,
                    polls,
                    extra={"provider": self.provider},
                )
                raise GenerationTimeout(
                    f"{self.provider} job {job.id} did not finish within {self.timeout:g}s"
                )
            await self._poll(job, headers, secret)
            polls += 1
            if job.status.is_terminal:
                break
            remaining = deadline - self._clock()
            if remaining > 0:
                await self._sleep(min(self.interval, remaining))

        logger.debug("Job %s finished: %s after %d polls", job.id, job.status.value, polls)
        return self._finish(job, secret, mime_type)

    async def _poll(
        self,
        job: GenerationJob,
        headers: Optional[dict[str, str]],
        secret: Optional[str],
    ) -> None:
        try:
            response = await self.client.get(job.poll_url, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"{self.provider} poll failed: {redact(str(exc), secret)}"
            ) from exc
        body = redact(response.text, secret)
        if response.is_error:
            raise ProviderError(
                f"{self.provider} poll error {response.status_code}",
                upstream_status=response.status_code,
                raw_body=body,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(
                f"{self.provider} returned malformed job status",
                upstream_status=response.status_code,
                raw_body=body,
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderError(
                f"{self.provider} returned malformed job status",
                upstream_status=response.status_code,
                raw_body=body,
            )
        job.payload = payload
        job.status = parse_status(payload.get("status"))

    def _finish(self, job: GenerationJob, secret: Optional[str], mime_type: str) -> str:
        if job.status is JobStatus.succeeded:
            reference = extract_image_reference(job.payload, mime_type)
            if reference is None:
                raise NoImageReturned(self.provider, redact(str(job.payload), secret))
            return reference
        detail = job.payload.get("error")
        message = job.status.value if not detail else f"{job.status.value}: {detail}"
        raise ProviderError(redact(message, secret), raw_body=redact(str(job.payload), secret))
