from .settings import (
    QueueConfig,
    PublisherConfig,
    StorageConfig,
    PipelineConfig,
    LoggingConfig,
    WorkerConfig,
)

__all__ = [
    "QueueConfig",
    "PublisherConfig",
    "StorageConfig",
    "PipelineConfig",
    "LoggingConfig",
    "WorkerConfig",
]
