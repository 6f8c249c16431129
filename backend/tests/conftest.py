"""Shared test fixtures and configuration."""
from typing import Callable, Iterator

import httpx
import pytest

from dreamcanvas.core.config import get_settings
from dreamcanvas.models.generation import (
    AspectRatio,
    Dimensions,
    ProviderConfig,
    ProviderName,
)
from dreamcanvas.services.providers.base import ProviderRequest

TEST_KEY = "sk-test-secret-123"


@pytest.fixture(autouse=True)
def set_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point settings at ModelsLab with a dummy key for all tests."""
    monkeypatch.setenv("IMAGE_PROVIDER", "modelslab")
    monkeypatch.setenv("MODELSLAB_API_KEY", TEST_KEY)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def provider_request() -> ProviderRequest:
    return ProviderRequest(
        prompt="cyberpunk style, a castle",
        negative_prompt="blurry",
        guidance_scale=7.5,
        style="cyberpunk",
        aspect=AspectRatio.landscape,
        dimensions=Dimensions(width=1344, height=768),
    )


@pytest.fixture
def make_config() -> Callable[..., ProviderConfig]:
    def _make(name: ProviderName, **kwargs: object) -> ProviderConfig:
        defaults: dict[str, object] = {
            "name": name,
            "credential": TEST_KEY,
            "endpoint_url": "https://provider.test/generate",
            "model": "test-model",
        }
        defaults.update(kwargs)
        return ProviderConfig(**defaults)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def mock_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for an AsyncClient whose requests are answered by ``handler``."""

    def _make(handler: Callable[[httpx.Request], object]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))  # type: ignore[arg-type]

    return _make
