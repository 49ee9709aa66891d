from .storage_provider import StorageProvider
from .decoder_provider import DecoderProvider
from .queue_provider import SegmentMessage, QueueProvider, EventPublisherProvider, MessageHandler

__all__ = [
    'StorageProvider',
    'DecoderProvider',
    'SegmentMessage',
    'QueueProvider',
    'EventPublisherProvider',
    'MessageHandler',
]
