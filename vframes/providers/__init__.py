"""Provider system for the frame extraction worker."""

from .base import (
    StorageProvider,
    DecoderProvider,
    SegmentMessage,
    QueueProvider,
    EventPublisherProvider,
)
from .factory import ProviderFactory

__all__ = [
    # Base classes
    'StorageProvider',
    'DecoderProvider',
    'SegmentMessage',
    'QueueProvider',
    'EventPublisherProvider',
    # Factory
    'ProviderFactory',
]
