"""
Frame extraction for a single video segment.

The sequencer downloads a segment, decodes it into frame images, keeps every
``stride``-th frame and uploads the kept frames to object storage in batches.
Progress is reported as a stream of events: one ``FrameProgress`` per uploaded
frame, then exactly one ``SequenceDone`` or ``SequenceFailed``.
"""

import asyncio
import math
import os
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Union
from urllib.parse import urlparse
import aiofiles
from loguru import logger

from ..exceptions import UploadException, ValidationException
from ..models import (
    DecodedFrame,
    Frame,
    FrameMap,
    FrameProgress,
    SequenceDone,
    SequenceEvent,
    SequenceFailed,
)
from ..providers.base import DecoderProvider, StorageProvider
from ..utils.error_handler import ErrorHandler, convert_exceptions
from ..utils.helper import scratch_dir, scratch_file, segment_base_name
from .batch_scheduler import DEFAULT_BATCH_SIZE, run_batched
from .downloader import SegmentDownloader

FRAME_CONTENT_TYPE = "image/jpeg"

Emit = Callable[[SequenceEvent], None]


def compute_stride(video_fps: float, required_fps: float) -> int:
    """
    Number of decoded frames per retained frame, ``round(video_fps / required_fps)``
    with halves rounded up, never below 1 (no upsampling).
    """
    if video_fps <= 0 or required_fps <= 0:
        raise ValueError(f"Frame rates must be positive, got video_fps={video_fps}, required_fps={required_fps}")
    return max(1, int(math.floor(video_fps / required_fps + 0.5)))


def select_frames(frames: Sequence[DecodedFrame], stride: int) -> List[DecodedFrame]:
    return [frame for frame in frames if frame.index % stride == 0]


def frame_key(video_id: str, segment_name: str, index: int, extension: str) -> str:
    return f"{video_id}/{segment_name}/{index}{extension}"


class FrameSequencer:
    """Turns a video segment into uploaded frames."""

    def __init__(
        self,
        storage: StorageProvider,
        decoder: DecoderProvider,
        downloader: Optional[SegmentDownloader] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        scratch_root: Optional[str] = None,
    ):
        """
        Args:
            storage: Object storage the frames are written to
            decoder: Decoder turning the downloaded segment into frame images
            downloader: Segment fetcher (default: SegmentDownloader())
            batch_size: Number of frames uploaded concurrently
            scratch_root: Directory for temporary files (default: system temp dir)
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {batch_size}")
        self.storage = storage
        self.decoder = decoder
        self.downloader = downloader or SegmentDownloader()
        self.batch_size = batch_size
        self.scratch_root = scratch_root

    @convert_exceptions({Exception: UploadException})
    async def _upload_frame(self, frame: DecodedFrame, bucket: str, key: str) -> str:
        async with aiofiles.open(frame.path, "rb") as f:
            data = await f.read()
        return await self.storage.save_bytes(key, data, FRAME_CONTENT_TYPE, folder_name=bucket)

    def _upload_task(self, frame: DecodedFrame, bucket: str, video_id: str, segment_name: str,
                     emit: Emit) -> Callable[[], Awaitable[Frame]]:
        extension = os.path.splitext(frame.path)[1] or ".jpg"
        key = frame_key(video_id, segment_name, frame.index, extension)

        async def upload() -> Frame:
            logger.debug(f"Uploading video frame to the bucket: {key}")
            uri = await self._upload_frame(frame, bucket, key)
            logger.debug(f"Video frame uploaded: {uri}")
            uploaded = Frame(idx=frame.index, uri=uri)
            emit(FrameProgress(uploaded))
            return uploaded

        return upload

    async def _sequence(self, video_id: str, segment_uri: str, bucket: str,
                        video_fps: float, required_fps: float, emit: Emit) -> FrameMap:
        try:
            stride = compute_stride(video_fps, required_fps)
        except ValueError as e:
            raise ValidationException(str(e)) from e

        segment_name = segment_base_name(segment_uri)
        suffix = os.path.splitext(urlparse(segment_uri).path)[1]

        with scratch_dir(self.scratch_root) as frames_dir:
            with scratch_file(suffix=suffix, directory=self.scratch_root) as video_path:
                await self.downloader.download(segment_uri, video_path)
                decoded = await self.decoder.decode(video_path, frames_dir)

            retained = select_frames(decoded, stride)
            logger.info(
                f"{len(retained)} of {len(decoded)} frames retained (stride {stride}) from {segment_uri}"
            )

            tasks = [
                self._upload_task(frame, bucket, video_id, segment_name, emit)
                for frame in retained
            ]
            frames = await run_batched(tasks, self.batch_size)

        logger.info(f"All {len(frames)} video frames of {segment_uri} uploaded")
        return {frame.idx: frame.uri for frame in frames}

    async def _execute(self, events: asyncio.Queue, video_id: str, segment_uri: str, bucket: str,
                       video_fps: float, required_fps: float):
        try:
            frame_map = await self._sequence(
                video_id, segment_uri, bucket, video_fps, required_fps, events.put_nowait
            )
        except Exception as e:
            fatal = ErrorHandler.is_fatal(e)
            logger.warning(f"Processing {segment_uri} failed ({'fatal' if fatal else 'transient'}): {e}")
            events.put_nowait(SequenceFailed(fatal=fatal, error=e))
        else:
            events.put_nowait(SequenceDone(frame_map=frame_map))

    async def process(self, video_id: str, segment_uri: str, bucket: str,
                      video_fps: float, required_fps: float) -> AsyncIterator[SequenceEvent]:
        """
        Extract, downsample and upload the frames of ``segment_uri``.

        Yields ``FrameProgress`` for every uploaded frame as soon as its upload
        completes (in completion order), then a single ``SequenceDone`` carrying
        the frame map or a ``SequenceFailed`` carrying the error and whether it
        is fatal. Scratch files are gone by the time the terminal event is
        yielded. Closing the iterator early cancels the work.
        """
        events: asyncio.Queue = asyncio.Queue()
        worker = asyncio.create_task(
            self._execute(events, video_id, segment_uri, bucket, video_fps, required_fps)
        )
        try:
            while True:
                event = await events.get()
                yield event
                if isinstance(event, (SequenceDone, SequenceFailed)):
                    return
        finally:
            if not worker.done():
                worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)

    async def run(self, video_id: str, segment_uri: str, bucket: str, video_fps: float, required_fps: float,
                  on_frame: Optional[Callable[[Frame], Awaitable[None]]] = None
                  ) -> Union[SequenceDone, SequenceFailed]:
        """Drain ``process()`` and return its terminal event."""
        async with aclosing(self.process(video_id, segment_uri, bucket, video_fps, required_fps)) as stream:
            async for event in stream:
                if isinstance(event, FrameProgress):
                    if on_frame is not None:
                        await on_frame(event.frame)
                else:
                    return event
        raise RuntimeError("Frame sequence ended without a terminal event")
