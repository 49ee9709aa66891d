from typing import Dict, Optional, Type
from loguru import logger

from .base import (
    StorageProvider,
    DecoderProvider,
    QueueProvider,
    EventPublisherProvider,
)
from .azure_providers import (
    AzureStorageProvider,
    ServiceBusQueueProvider,
    EventHubPublisherProvider,
)
from .aws_providers import S3StorageProvider
from .custom_providers import (
    LocalStorageProvider,
    InMemoryQueueProvider,
    InMemoryEventPublisherProvider,
    OpenCVDecoder,
    FFmpegDecoder,
)
from ..exceptions import ConfigurationException
from ..config.settings import WorkerConfig


class ProviderFactory:
    """Factory class for creating provider instances."""

    _storage_providers: Dict[str, Type[StorageProvider]] = {
        'azure': AzureStorageProvider,
        'aws': S3StorageProvider,
        'local': LocalStorageProvider,
    }

    _decoder_providers: Dict[str, Type[DecoderProvider]] = {
        'opencv': OpenCVDecoder,
        'ffmpeg': FFmpegDecoder,
    }

    _queue_providers: Dict[str, Type[QueueProvider]] = {
        'azure_service_bus': ServiceBusQueueProvider,
        'memory': InMemoryQueueProvider,
    }

    _publisher_providers: Dict[str, Type[EventPublisherProvider]] = {
        'azure_event_hub': EventHubPublisherProvider,
        'memory': InMemoryEventPublisherProvider,
    }

    @staticmethod
    def _lookup(kind: str, registry: Dict[str, type], provider_name: str) -> type:
        if provider_name not in registry:
            raise ConfigurationException(
                f"Unknown {kind} provider: {provider_name}. "
                f"Supported providers: {list(registry.keys())}"
            )
        logger.info(f"Creating {kind} provider: {provider_name}")
        return registry[provider_name]

    @classmethod
    def create_storage_provider(cls, provider_name: str = None, config: Optional[WorkerConfig] = None) -> StorageProvider:
        """
        Create storage provider instance.

        Args:
            provider_name: Name of the provider (optional, defaults to config)
            config: Worker configuration (optional, loaded from the environment)

        Raises:
            ConfigurationException: If provider is not supported
        """
        config = config or WorkerConfig()
        provider_name = provider_name or config.storage.provider
        provider_class = cls._lookup("storage", cls._storage_providers, provider_name)
        return provider_class(config.storage.model_dump())

    @classmethod
    def create_decoder_provider(cls, provider_name: str = None, config: Optional[WorkerConfig] = None) -> DecoderProvider:
        config = config or WorkerConfig()
        provider_name = provider_name or config.pipeline.decoder
        provider_class = cls._lookup("decoder", cls._decoder_providers, provider_name)
        return provider_class(config.pipeline.model_dump())

    @classmethod
    def create_queue_provider(cls, provider_name: str = None, config: Optional[WorkerConfig] = None) -> QueueProvider:
        config = config or WorkerConfig()
        provider_name = provider_name or config.queue.provider
        provider_class = cls._lookup("queue", cls._queue_providers, provider_name)
        return provider_class(config.queue.model_dump())

    @classmethod
    def create_publisher_provider(cls, provider_name: str = None, config: Optional[WorkerConfig] = None) -> EventPublisherProvider:
        config = config or WorkerConfig()
        provider_name = provider_name or config.publisher.provider
        provider_class = cls._lookup("publisher", cls._publisher_providers, provider_name)
        return provider_class(config.publisher.model_dump())

    @classmethod
    def register_storage_provider(cls, name: str, provider_class: Type[StorageProvider]):
        """Register a new storage provider."""
        cls._storage_providers[name] = provider_class

    @classmethod
    def register_decoder_provider(cls, name: str, provider_class: Type[DecoderProvider]):
        """Register a new decoder provider."""
        cls._decoder_providers[name] = provider_class
