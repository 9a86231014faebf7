"""Provider registry: a closed mapping from Provider to its implementation."""

import logging
from typing import Callable, Optional, cast

from ..exceptions import MissingCredentialError
from ..model import Provider
from .anthropic_claude import AnthropicProvider
from .credentials import Credentials
from .google_gemini import GoogleGeminiProvider
from .openai_compatible import GroqProvider, OpenAIProvider
from .provider import LLMProvider, ModelInfo

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], LLMProvider]

PROVIDER_FACTORIES: dict[Provider, ProviderFactory] = {
    Provider.OPENAI: OpenAIProvider,
    Provider.GROQ: GroqProvider,
    Provider.ANTHROPIC: AnthropicProvider,
    Provider.GEMINI: GoogleGeminiProvider,
}


class ProviderRegistry:
    """Builds and caches one provider client per (provider, API key)."""

    def __init__(self, factories: Optional[dict[Provider, ProviderFactory]] = None) -> None:
        self._factories: dict[Provider, ProviderFactory] = dict(factories or PROVIDER_FACTORIES)
        self._cached_providers: dict[tuple[Provider, str], LLMProvider] = {}

    def get_provider(
        self,
        provider: Provider | str,
        credentials: Credentials,
        operation: Optional[str] = None,
    ) -> LLMProvider:
        """Get the provider client for the given credentials.

        Args:
            provider: Provider to use
            credentials: Credential set to take the key from
            operation: Name of the calling operation, used in error messages

        Returns:
            LLMProvider instance

        Raises:
            MissingCredentialError: If the provider's key is absent
        """
        provider = Provider(provider)
        api_key = credentials.key_for(provider)
        if not api_key:
            raise MissingCredentialError(provider.value, operation)

        cache_key = (provider, api_key)
        if cache_key not in self._cached_providers:
            logger.debug("Initializing %s provider client", provider.value)
            self._cached_providers[cache_key] = self._factories[provider](api_key)

        return cast(LLMProvider, self._cached_providers[cache_key])

    def get_all_models(self, credentials: Credentials) -> list[ModelInfo]:
        """Get models across every provider the credentials unlock."""
        all_models: list[ModelInfo] = []
        for provider in self._factories:
            if credentials.has(provider):
                all_models.extend(self.get_provider(provider, credentials).get_available_models())
        return all_models


# Global registry instance
_registry = ProviderRegistry()


def get_provider_registry() -> ProviderRegistry:
    """Get global provider registry instance."""
    return _registry
