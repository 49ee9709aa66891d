from .storage_provider import LocalStorageProvider
from .memory_queue_provider import InMemoryQueueProvider, InMemorySegmentMessage, InMemoryEventPublisherProvider
from .opencv_decoder import OpenCVDecoder
from .ffmpeg_decoder import FFmpegDecoder

__all__ = [
    'LocalStorageProvider',
    'InMemoryQueueProvider',
    'InMemorySegmentMessage',
    'InMemoryEventPublisherProvider',
    'OpenCVDecoder',
    'FFmpegDecoder',
]
