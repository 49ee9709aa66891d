import pytest
from pydantic import ValidationError

from vframes.config import WorkerConfig
from vframes.exceptions import ConfigurationException
from vframes.providers import ProviderFactory
from vframes.providers.custom_providers import (
    InMemoryEventPublisherProvider,
    InMemoryQueueProvider,
    LocalStorageProvider,
    OpenCVDecoder,
)


@pytest.fixture
def local_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_PROVIDER", "local")
    monkeypatch.setenv("STORAGE_BUCKET", "frames")
    monkeypatch.setenv("STORAGE_BASE_PATH", str(tmp_path / "store"))
    monkeypatch.setenv("PIPELINE_REQUIRED_FPS", "2")
    monkeypatch.setenv("QUEUE_PROVIDER", "memory")
    monkeypatch.setenv("PUBLISHER_PROVIDER", "memory")


def test_sections_read_their_prefix(local_env, monkeypatch):
    monkeypatch.setenv("PIPELINE_UPLOAD_BATCH_SIZE", "25")
    monkeypatch.setenv("QUEUE_LEASE_MARGIN_SECONDS", "2.5")

    config = WorkerConfig()

    assert config.storage.bucket == "frames"
    assert config.pipeline.required_fps == 2
    assert config.pipeline.upload_batch_size == 25
    assert config.queue.lease_margin_seconds == 2.5
    assert config.publisher.frames_topic == "video-frames"


def test_defaults(local_env):
    config = WorkerConfig()

    assert config.pipeline.upload_batch_size == 100
    assert config.pipeline.decoder == "opencv"
    assert config.queue.segments_topic == "video-segments"
    assert config.logging.level == "INFO"


def test_required_fps_is_required(local_env, monkeypatch):
    monkeypatch.delenv("PIPELINE_REQUIRED_FPS")

    with pytest.raises(ValidationError):
        WorkerConfig().pipeline


@pytest.mark.parametrize("name, value", [("PIPELINE_REQUIRED_FPS", "0"), ("PIPELINE_UPLOAD_BATCH_SIZE", "0")])
def test_non_positive_values_rejected(local_env, monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        WorkerConfig().pipeline


def test_factory_builds_configured_providers(local_env):
    config = WorkerConfig()

    assert isinstance(ProviderFactory.create_storage_provider(config=config), LocalStorageProvider)
    assert isinstance(ProviderFactory.create_decoder_provider(config=config), OpenCVDecoder)
    assert isinstance(ProviderFactory.create_queue_provider(config=config), InMemoryQueueProvider)
    assert isinstance(ProviderFactory.create_publisher_provider(config=config), InMemoryEventPublisherProvider)


def test_factory_rejects_unknown_provider(local_env):
    with pytest.raises(ConfigurationException):
        ProviderFactory.create_storage_provider("gcs", config=WorkerConfig())


def test_registered_decoder_is_selectable(local_env, monkeypatch):
    monkeypatch.setattr(ProviderFactory, "_decoder_providers", dict(ProviderFactory._decoder_providers))
    monkeypatch.setenv("PIPELINE_DECODER", "custom")

    class CustomDecoder(OpenCVDecoder):
        pass

    ProviderFactory.register_decoder_provider("custom", CustomDecoder)

    assert isinstance(ProviderFactory.create_decoder_provider(config=WorkerConfig()), CustomDecoder)


def test_jpeg_quality_reaches_opencv_decoder(local_env, monkeypatch):
    monkeypatch.setenv("PIPELINE_JPEG_QUALITY", "80")

    decoder = ProviderFactory.create_decoder_provider(config=WorkerConfig())

    assert decoder.jpeg_quality == 80


def test_jpeg_quality_out_of_range(local_env, monkeypatch):
    monkeypatch.setenv("PIPELINE_JPEG_QUALITY", "101")

    with pytest.raises(ValidationError):
        WorkerConfig().pipeline
