import asyncio
import json

import pytest

from vframes.config import WorkerConfig
from vframes.providers.custom_providers import LocalStorageProvider
from vframes.tests.fakes import FakeDecoder
from vframes.worker import build_worker, main, parse_args, run_worker


@pytest.fixture
def local_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_PROVIDER", "local")
    monkeypatch.setenv("STORAGE_BUCKET", "frames")
    monkeypatch.setenv("STORAGE_BASE_PATH", str(tmp_path / "store"))
    monkeypatch.setenv("PIPELINE_REQUIRED_FPS", "10")
    monkeypatch.setenv("PIPELINE_SCRATCH_DIR", str(tmp_path))
    monkeypatch.setenv("QUEUE_PROVIDER", "memory")
    monkeypatch.setenv("QUEUE_LEASE_MARGIN_SECONDS", "0.1")
    monkeypatch.setenv("PUBLISHER_PROVIDER", "memory")


def test_build_worker_wires_configuration(local_env):
    worker = build_worker(WorkerConfig())

    assert isinstance(worker.storage, LocalStorageProvider)
    assert worker.consumer.bucket == "frames"
    assert worker.consumer.required_fps == 10
    assert worker.consumer.lease_margin_seconds == 0.1
    assert worker.consumer.sequencer.batch_size == 100


async def test_worker_processes_queued_segment(local_env, segment_server, tmp_path):
    worker = build_worker(WorkerConfig())
    worker.consumer.sequencer.decoder = FakeDecoder(frame_count=9)
    worker.queue.put({
        "videoId": "abc",
        "segmentIdx": 1,
        "uri": str(segment_server.make_url("/videos/abc/segment_0001.mp4")),
        "fps": 30,
        "framesPerSegment": 9,
    })
    stop = asyncio.Event()

    running = asyncio.create_task(run_worker(worker, stop_event=stop))
    try:
        await asyncio.wait_for(_until(lambda: len(worker.queue.finished) == 1), 5)
    finally:
        stop.set()
        await running

    published = worker.events.published["video-frames"]
    assert sorted(e["frameIdx"] for e in published) == [9, 12, 15]
    stored = tmp_path / "store" / "frames" / "abc" / "segment_0001"
    assert sorted(p.name for p in stored.iterdir()) == ["0.jpg", "3.jpg", "6.jpg"]


async def _until(predicate):
    while not predicate():
        await asyncio.sleep(0.01)


def test_parse_args():
    args = parse_args(["--log-level", "DEBUG", "--job", json.dumps({"videoId": "a"}), "--job", "{}"])

    assert args.log_level == "DEBUG"
    assert len(args.job) == 2
    assert args.env_file is None


def test_main_fails_on_missing_configuration(local_env, monkeypatch):
    monkeypatch.delenv("STORAGE_BUCKET")

    assert main([]) == 1
