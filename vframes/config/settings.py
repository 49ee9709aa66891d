from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, PrivateAttr
from typing import Optional
from dotenv import load_dotenv, find_dotenv


class QueueConfig(BaseSettings):
    """Segment job queue configuration."""

    provider: str = Field(default="azure_service_bus")
    namespace: Optional[str] = Field(default=None)
    connection_string: Optional[str] = Field(default=None)
    use_managed_identity: bool = Field(default=True)
    segments_topic: str = Field(default="video-segments")
    segments_subscription: str = Field(default="extract-frames")
    # When set, jobs are received from a plain queue instead of a topic subscription
    segments_queue: Optional[str] = Field(default=None)
    max_in_flight: int = Field(default=1, ge=1)
    max_wait_time: float = Field(default=5.0, gt=0)
    lease_margin_seconds: float = Field(default=1.0, ge=0)
    memory_lease_seconds: float = Field(default=60.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="QUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )


class PublisherConfig(BaseSettings):
    """Frame-created event publisher configuration."""

    provider: str = Field(default="azure_event_hub")
    namespace: Optional[str] = Field(default=None)
    connection_string: Optional[str] = Field(default=None)
    use_managed_identity: bool = Field(default=True)
    frames_topic: str = Field(default="video-frames")

    model_config = SettingsConfigDict(
        env_prefix="PUBLISHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )


class StorageConfig(BaseSettings):
    """Storage configuration."""

    provider: str = Field(default="azure")
    bucket: str = Field(..., min_length=1)
    account_url: Optional[str] = Field(default=None)
    connection_string: Optional[str] = Field(default=None)
    use_managed_identity: bool = Field(default=True)
    region: Optional[str] = Field(default=None)
    storage_domain: str = Field(default="s3.amazonaws.com")
    base_path: str = Field(default="./local_storage")

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )


class PipelineConfig(BaseSettings):
    """Frame extraction pipeline configuration."""

    required_fps: float = Field(..., gt=0)
    upload_batch_size: int = Field(default=100, ge=1)
    decoder: str = Field(default="opencv")
    jpeg_quality: int = Field(default=95, ge=1, le=100)
    scratch_dir: Optional[str] = Field(default=None)
    download_timeout: float = Field(default=300.0, gt=0)
    download_chunk_size: int = Field(default=1024 * 1024, ge=1)
    ffmpeg_binary: str = Field(default="ffmpeg")

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    enable_json: bool = Field(default=False)
    enable_file_logging: bool = Field(default=False)
    max_file_size: str = Field(default="10 MB")
    retention_days: int = Field(default=7)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )


class WorkerConfig(BaseSettings):
    """Main configuration class."""

    app_name: str = Field(default="vframes worker")
    environment: str = Field(default="development")

    _queue: Optional[QueueConfig] = PrivateAttr(default=None)
    _publisher: Optional[PublisherConfig] = PrivateAttr(default=None)
    _storage: Optional[StorageConfig] = PrivateAttr(default=None)
    _pipeline: Optional[PipelineConfig] = PrivateAttr(default=None)
    _logging: Optional[LoggingConfig] = PrivateAttr(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )

    def __init__(self, **kwargs):
        # Force load environment variables before initializing
        load_dotenv(find_dotenv(usecwd=True))

        super().__init__(**kwargs)

    @property
    def queue(self) -> QueueConfig:
        if self._queue is None:
            self._queue = QueueConfig()
        return self._queue

    @property
    def publisher(self) -> PublisherConfig:
        if self._publisher is None:
            self._publisher = PublisherConfig()
        return self._publisher

    @property
    def storage(self) -> StorageConfig:
        if self._storage is None:
            self._storage = StorageConfig()
        return self._storage

    @property
    def pipeline(self) -> PipelineConfig:
        if self._pipeline is None:
            self._pipeline = PipelineConfig()
        return self._pipeline

    @property
    def logging(self) -> LoggingConfig:
        if self._logging is None:
            self._logging = LoggingConfig()
        return self._logging
