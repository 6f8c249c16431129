"""Configuration management using pydantic-settings."""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from dreamcanvas.models.generation import ProviderConfig, ProviderName

MODELSLAB_URL = "https://modelslab.com/api/v6/realtime/text2img"
STABILITY_URL = "https://api.stability.ai/v2beta/stable-image/generate/core"
REPLICATE_URL = "https://api.replicate.com"
OPENAI_URL = "https://api.openai.com/v1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "dreamcanvas"
    backend_host: str = "0.0.0.0"
    backend_port: int = 10000
    cors_allow_origins: list[str] = ["*"]

    # Active provider
    image_provider: ProviderName = ProviderName.modelslab

    # ModelsLab
    modelslab_api_key: str = ""
    modelslab_model: str = "realistic-vision-v5.1"
    modelslab_url: str = MODELSLAB_URL

    # Stability AI
    stability_api_key: str = ""
    stability_url: str = STABILITY_URL
    stability_output_format: str = "png"

    # Replicate
    replicate_api_token: str = ""
    replicate_model: str = "black-forest-labs/flux-schnell"
    replicate_url: str = REPLICATE_URL

    # Generic HTTP-JSON provider
    generic_api_key: str = ""
    generic_url: str = ""
    generic_header_name: str = "Authorization"
    generic_header_template: str = "Bearer {key}"

    # OpenAI-compatible image API
    openai_api_key: str = ""
    openai_url: str = OPENAI_URL
    openai_model: str = "dall-e-3"

    # Gemini image model on Vertex AI (credential is the GCP project id)
    gcp_project_id: str = ""
    gemini_model: str = "gemini-3-pro-image-preview"

    # Timing
    poll_interval_seconds: float = 1.0
    poll_timeout_seconds: float = 90.0
    http_timeout_seconds: float = 120.0

    # Admission control
    daily_quota: int = 0
    caller_id_header: str = "x-user-id"
    donation_url: Optional[str] = None

    def provider_config(self) -> ProviderConfig:
        """Resolve the immutable config for the active provider."""
        name = self.image_provider
        common = {
            "name": name,
            "poll_interval": self.poll_interval_seconds,
            "poll_timeout": self.poll_timeout_seconds,
        }
        if name == ProviderName.modelslab:
            return ProviderConfig(
                credential=self.modelslab_api_key.strip(),
                endpoint_url=self.modelslab_url,
                model=self.modelslab_model.strip(),
                **common,
            )
        if name == ProviderName.stability:
            return ProviderConfig(
                credential=self.stability_api_key.strip(),
                endpoint_url=self.stability_url,
                output_format=self.stability_output_format,
                **common,
            )
        if name == ProviderName.replicate:
            return ProviderConfig(
                credential=self.replicate_api_token.strip(),
                endpoint_url=self.replicate_url,
                model=self.replicate_model.strip(),
                **common,
            )
        if name == ProviderName.generic:
            return ProviderConfig(
                credential=self.generic_api_key.strip(),
                endpoint_url=self.generic_url,
                header_name=self.generic_header_name,
                header_template=self.generic_header_template,
                **common,
            )
        if name == ProviderName.openai:
            return ProviderConfig(
                credential=self.openai_api_key.strip(),
                endpoint_url=self.openai_url,
                model=self.openai_model.strip(),
                **common,
            )
        return ProviderConfig(
            credential=self.gcp_project_id.strip(),
            endpoint_url="",
            model=self.gemini_model.strip(),
            **common,
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
