"""Tests for GenerationService orchestration."""
import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from dreamcanvas.core.errors import (
    ConcurrencyLimitExceeded,
    GenerationTimeout,
    InvalidRequest,
    MissingCredential,
    ProviderError,
    QuotaExceeded,
)
from dreamcanvas.models.generation import (
    AspectRatio,
    GenerationRequest,
    GenerationResult,
    ProviderName,
)
from dreamcanvas.services.admission import AdmissionController
from dreamcanvas.services.generation import GenerationService
from dreamcanvas.services.providers.base import ProviderRequest


# ---------------------------------------------------------------------------
# Helpers / Fixtures
# ---------------------------------------------------------------------------


def _result(request: ProviderRequest) -> GenerationResult:
    return GenerationResult(
        image_url="http://img/1.png",
        aspect=request.aspect.value,
        style=request.style,
        seed=request.seed,
    )


def _make_provider_mock(side_effect: object = None) -> MagicMock:
    mock = MagicMock()
    mock.name = ProviderName.modelslab
    mock.redact = MagicMock(side_effect=lambda text: text)
    mock.generate = AsyncMock(side_effect=side_effect or _result)
    return mock


@pytest.fixture
def admission() -> AdmissionController:
    return AdmissionController(daily_quota=2)


@pytest.fixture
def provider() -> MagicMock:
    return _make_provider_mock()


@pytest.fixture
def service(provider: MagicMock, admission: AdmissionController) -> GenerationService:
    return GenerationService(provider=provider, admission=admission, donation_url="https://ko-fi.test/dc")


# ---------------------------------------------------------------------------
# Request resolution
# ---------------------------------------------------------------------------


class TestBuildProviderRequest:
    def test_resolves_style_and_dimensions(self) -> None:
        req = GenerationService.build_provider_request(
            GenerationRequest(prompt="a castle", aspect="1280x720", style="Cyberpunk", seed=5)
        )
        assert req.aspect is AspectRatio.landscape
        assert (req.dimensions.width, req.dimensions.height) == (1344, 768)
        assert req.style == "cyberpunk"
        assert req.prompt.startswith("cyberpunk style")
        assert req.prompt.endswith("a castle")
        assert req.seed == 5

    def test_unknown_style_falls_back(self) -> None:
        req = GenerationService.build_provider_request(GenerationRequest(prompt="x", style="???"))
        assert req.style == "realistic"


# ---------------------------------------------------------------------------
# handle()
# ---------------------------------------------------------------------------


class TestHandle:
    async def test_success_returns_result_and_commits_quota(
        self, service: GenerationService, admission: AdmissionController
    ) -> None:
        result = await service.handle(
            GenerationRequest(prompt="a castle", aspect="16:9", style="cyberpunk"), "alice"
        )
        assert result.image_url == "http://img/1.png"
        assert result.aspect == "16:9"
        assert result.style == "cyberpunk"
        assert admission.in_flight == 0
        assert admission.usage("alice") == 1

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    async def test_empty_prompt_rejected_before_anything(
        self, service: GenerationService, provider: MagicMock, admission: AdmissionController, prompt: str
    ) -> None:
        with pytest.raises(InvalidRequest):
            await service.handle(GenerationRequest(prompt=prompt), "alice")
        provider.generate.assert_not_called()
        assert admission.in_flight == 0

    async def test_busy_gate_rejects_without_calling_provider(
        self, service: GenerationService, provider: MagicMock, admission: AdmissionController
    ) -> None:
        assert admission.try_acquire()
        with pytest.raises(ConcurrencyLimitExceeded):
            await service.handle(GenerationRequest(prompt="x"), "alice")
        provider.generate.assert_not_called()
        # The rejected request must not release the slot it never took.
        assert admission.in_flight == 1

    async def test_quota_exceeded_carries_donation_url(
        self, service: GenerationService, provider: MagicMock, admission: AdmissionController
    ) -> None:
        await service.handle(GenerationRequest(prompt="x"), "alice")
        await service.handle(GenerationRequest(prompt="x"), "alice")
        with pytest.raises(QuotaExceeded) as exc_info:
            await service.handle(GenerationRequest(prompt="x"), "alice")
        assert exc_info.value.donation_url == "https://ko-fi.test/dc"
        assert provider.generate.call_count == 2
        assert admission.in_flight == 0

    @pytest.mark.parametrize(
        "error",
        [
            ProviderError("ModelsLab error 500", upstream_status=500),
            GenerationTimeout(),
            MissingCredential("modelslab"),
        ],
    )
    async def test_failure_releases_slot_and_does_not_consume_quota(
        self, admission: AdmissionController, error: Exception
    ) -> None:
        svc = GenerationService(provider=_make_provider_mock(side_effect=error), admission=admission)
        with pytest.raises(type(error)):
            await svc.handle(GenerationRequest(prompt="x"), "alice")
        assert admission.in_flight == 0
        assert admission.usage("alice") == 0
        # Both units of the allowance are still available.
        assert admission.try_acquire_quota("alice")
        assert admission.try_acquire_quota("alice")

    async def test_unexpected_exception_wrapped_as_provider_error(
        self, admission: AdmissionController, caplog: pytest.LogCaptureFixture
    ) -> None:
        svc = GenerationService(provider=_make_provider_mock(side_effect=KeyError("output")), admission=admission)
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ProviderError):
                await svc.handle(GenerationRequest(prompt="x"), "alice")
        assert admission.in_flight == 0
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    async def test_second_concurrent_request_rejected_immediately(
        self, admission: AdmissionController
    ) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_generate(request: ProviderRequest) -> GenerationResult:
            started.set()
            await release.wait()
            return _result(request)

        svc = GenerationService(provider=_make_provider_mock(side_effect=slow_generate), admission=admission)
        first = asyncio.create_task(svc.handle(GenerationRequest(prompt="first"), "alice"))
        await started.wait()

        with pytest.raises(ConcurrencyLimitExceeded):
            await svc.handle(GenerationRequest(prompt="second"), "bob")

        release.set()
        result = await first
        assert result.image_url == "http://img/1.png"
        assert admission.in_flight == 0

    async def test_slot_available_after_completion(self, service: GenerationService) -> None:
        await service.handle(GenerationRequest(prompt="x"), "alice")
        result = await service.handle(GenerationRequest(prompt="y"), "bob")
        assert result.image_url


# ---------------------------------------------------------------------------
# selftest()
# ---------------------------------------------------------------------------


class TestSelftest:
    async def test_ok(self, service: GenerationService, admission: AdmissionController) -> None:
        assert admission.try_acquire()
        report = await service.selftest()
        assert report == {"ok": True, "status": 200, "body": "http://img/1.png"}

    async def test_reports_upstream_status(self, admission: AdmissionController) -> None:
        error = ProviderError("ModelsLab error 401", upstream_status=401, raw_body="bad key")
        svc = GenerationService(provider=_make_provider_mock(side_effect=error), admission=admission)
        report = await svc.selftest()
        assert report == {"ok": False, "status": 401, "body": "bad key"}

    async def test_missing_credential(self, admission: AdmissionController) -> None:
        svc = GenerationService(
            provider=_make_provider_mock(side_effect=MissingCredential("modelslab")), admission=admission
        )
        report = await svc.selftest()
        assert report["ok"] is False
        assert report["status"] == 401
