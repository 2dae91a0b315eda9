"""
Store factory for creating the configured store implementation.
"""

from typing import Dict, Type
import logging

from .base import Store
from .sheets import GoogleSheetsStore
from ..config import StoreConfig
from ..exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class StoreFactory:
    """Factory for creating stores based on provider configuration."""

    _STORE_REGISTRY: Dict[str, Type[Store]] = {
        "google_sheets": GoogleSheetsStore,
    }

    @classmethod
    def create_store(cls, config: StoreConfig) -> Store:
        """
        Create a store based on the provider configuration.

        Raises:
            ConfigurationError: If the provider is unknown or the store
                cannot be created from the configuration
        """
        provider = config.provider.lower()

        if provider not in cls._STORE_REGISTRY:
            raise ConfigurationError(
                f"Unsupported store provider: {provider}. "
                f"Available providers: {cls.get_supported_providers()}"
            )

        store_class = cls._STORE_REGISTRY[provider]
        logger.debug(f"Creating {provider} store")
        return store_class(config)

    @classmethod
    def get_supported_providers(cls) -> list[str]:
        return list(cls._STORE_REGISTRY.keys())

    @classmethod
    def register_store(cls, provider: str, store_class: Type[Store]) -> None:
        """Register a store implementation under a provider name."""
        if not issubclass(store_class, Store):
            raise ConfigurationError(f"{store_class.__name__} is not a Store")
        cls._STORE_REGISTRY[provider.lower()] = store_class
