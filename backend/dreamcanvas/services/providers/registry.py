"""Provider selection by configuration-time discriminator."""
import httpx

from dreamcanvas.models.generation import ProviderConfig, ProviderName
from dreamcanvas.services.providers.base import ImageProvider
from dreamcanvas.services.providers.gemini import GeminiProvider
from dreamcanvas.services.providers.generic import GenericProvider
from dreamcanvas.services.providers.modelslab import ModelsLabProvider
from dreamcanvas.services.providers.openai_compat import OpenAIProvider
from dreamcanvas.services.providers.replicate import ReplicateProvider
from dreamcanvas.services.providers.stability import StabilityProvider

PROVIDERS: dict[ProviderName, type[ImageProvider]] = {
    ProviderName.modelslab: ModelsLabProvider,
    ProviderName.stability: StabilityProvider,
    ProviderName.replicate: ReplicateProvider,
    ProviderName.generic: GenericProvider,
    ProviderName.openai: OpenAIProvider,
    ProviderName.gemini: GeminiProvider,
}


def build_provider(config: ProviderConfig, client: httpx.AsyncClient) -> ImageProvider:
    return PROVIDERS[config.name](config, client)
