import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from vframes.pipeline import FramePublisher, FrameSequencer, LeaseAwareConsumer
from vframes.providers.custom_providers import InMemoryEventPublisherProvider
from vframes.tests.fakes import SEGMENT_BYTES, FakeDecoder, FakeDownloader, MemoryStorage


@pytest.fixture
def scratch_root(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return str(path)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def decoder():
    return FakeDecoder(frame_count=5)


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def sequencer(storage, decoder, downloader, scratch_root):
    return FrameSequencer(storage, decoder, downloader=downloader, batch_size=2, scratch_root=scratch_root)


@pytest.fixture
def events():
    return InMemoryEventPublisherProvider({})


@pytest.fixture
def consumer(sequencer, events):
    return LeaseAwareConsumer(
        sequencer=sequencer,
        publisher=FramePublisher(events, topic="video-frames"),
        bucket="frames-bucket",
        required_fps=30,
        lease_margin_seconds=0.05,
    )


@pytest.fixture
async def segment_server():
    """HTTP server with a video segment, a slow segment and a non-video resource."""

    async def video(request):
        return web.Response(body=SEGMENT_BYTES, content_type="video/mp4")

    async def page(request):
        return web.Response(text="<html></html>", content_type="text/html")

    async def slow(request):
        await asyncio.sleep(0.5)
        return web.Response(body=SEGMENT_BYTES, content_type="video/mp4")

    app = web.Application()
    app.router.add_get("/videos/abc/segment_0001.mp4", video)
    app.router.add_get("/videos/abc/index.html", page)
    app.router.add_get("/videos/abc/slow.mp4", slow)

    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()

