"""Provider abstraction for pronunciation synthesis backends.

This module provides a registry pattern for managing providers,
allowing runtime selection of different speech backends.
"""

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .base import TTSProvider

from .elevenlabs import ElevenLabsProvider
from .google import GoogleCloudProvider

__all__ = ["ElevenLabsProvider", "GoogleCloudProvider", "ProviderRegistry"]


class ProviderRegistry:
    """Registry for managing synthesis providers.

    This class maintains a registry of available providers,
    allowing registration and retrieval by name.
    """

    _providers: ClassVar[dict[str, type["TTSProvider"]]] = {}
    _instances: ClassVar[dict[str, "TTSProvider"]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type["TTSProvider"]) -> None:
        """Register a provider.

        Args:
            name: Name to register the provider under
            provider_class: Provider class that implements TTSProvider
        """
        cls._providers[name] = provider_class

    @classmethod
    def get(cls, name: str) -> type["TTSProvider"]:
        """Get a provider class by name.

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def get_instance(cls, name: str, **kwargs: Any) -> "TTSProvider":
        """Get a cached provider instance by name.

        Creates the instance on first call with ``kwargs``, returns the cached
        instance after so backend clients and their connections are reused.

        Raises:
            KeyError: If provider name not found
            TTSAuthError: If the provider cannot be configured
        """
        if name not in cls._instances:
            provider_class = cls.get(name)
            cls._instances[name] = provider_class(**kwargs)
        return cls._instances[name]

    @classmethod
    def available(cls) -> list[str]:
        return sorted(cls._providers)


# Register providers
ProviderRegistry.register("google", GoogleCloudProvider)
ProviderRegistry.register("elevenlabs", ElevenLabsProvider)
