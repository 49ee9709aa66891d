"""
Queue-facing side of the worker: one segment message in, one settlement out.

A message is finished when its segment was processed or failed for good, and
left alone when the failure may be transient so the broker redelivers it after
the lease runs out. The lease is renewed for as long as processing lasts.
"""

import asyncio
import json
from contextlib import aclosing
from typing import Optional, Union
from loguru import logger
from pydantic import ValidationError

from ..exceptions import PublishException, ValidationException
from ..models import Frame, FrameProgress, SegmentJob, SegmentOutcome, SequenceDone, SequenceFailed
from ..providers.base import SegmentMessage
from ..utils.execution_timer import ExecutionTimer
from .frame_publisher import FramePublisher
from .sequencer import FrameSequencer


class LeaseKeeper:
    """Renews a message lease shortly before every deadline until stopped."""

    def __init__(self, message: SegmentMessage, margin_seconds: float = 1.0):
        self.message = message
        self.margin_seconds = margin_seconds
        self.renewals = 0
        self._task: Optional[asyncio.Task] = None

    def _next_delay(self) -> float:
        remaining = self.message.time_until_timeout()
        delay = remaining - self.margin_seconds
        if delay <= 0:
            # lease shorter than the margin: renew halfway to the deadline
            delay = max(0.0, remaining / 2)
        return delay

    async def _renew(self):
        while True:
            await asyncio.sleep(self._next_delay())
            if self.message.has_responded:
                return
            try:
                await self.message.touch()
            except Exception as e:
                logger.warning(f"Failed to renew lease of message {self.message.id}: {e}")
                return
            self.renewals += 1
            logger.debug(f"Touch [{self.message.id}]")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._renew())

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.stop()
        return False


class LeaseAwareConsumer:
    """Processes segment job messages and settles them according to the outcome."""

    def __init__(
        self,
        sequencer: FrameSequencer,
        publisher: FramePublisher,
        bucket: str,
        required_fps: float,
        lease_margin_seconds: float = 1.0,
    ):
        self.sequencer = sequencer
        self.publisher = publisher
        self.bucket = bucket
        self.required_fps = required_fps
        self.lease_margin_seconds = lease_margin_seconds

    @staticmethod
    def parse_job(body: str) -> SegmentJob:
        try:
            return SegmentJob.model_validate(json.loads(body))
        except (ValueError, TypeError, ValidationError) as e:
            raise ValidationException(f"Malformed segment job: {e}", error_code="INVALID_JOB") from e

    def read_job(self, message: SegmentMessage) -> SegmentJob:
        try:
            body = message.body
        except UnicodeDecodeError as e:
            raise ValidationException(f"Segment job body is not UTF-8: {e}", error_code="INVALID_JOB") from e
        return self.parse_job(body)

    async def _publish_frame(self, job: SegmentJob, frame: Frame) -> bool:
        try:
            await self.publisher.publish(job.video_id, job.segment_idx, job.fps, job.frames_per_segment, frame)
        except PublishException as e:
            # the frame is already stored; a lost notification does not fail the segment
            logger.error(f"Frame {frame.idx} of video {job.video_id} uploaded but not published: {e}")
            return False
        return True

    async def _process(self, job: SegmentJob) -> Union[SequenceDone, SequenceFailed]:
        unpublished = 0
        stream = self.sequencer.process(job.video_id, job.uri, self.bucket, job.fps, self.required_fps)
        async with aclosing(stream):
            async for event in stream:
                if isinstance(event, FrameProgress):
                    if not await self._publish_frame(job, event.frame):
                        unpublished += 1
                    continue
                if unpublished:
                    logger.warning(f"{unpublished} frame event(s) of video {job.video_id} were not published")
                return event
        raise RuntimeError("Frame sequence ended without a terminal event")

    async def _finish(self, message: SegmentMessage):
        try:
            await message.finish()
        except Exception as e:
            logger.error(f"Failed to finish message {message.id}, it will be redelivered: {e}")

    async def handle_message(self, message: SegmentMessage) -> SegmentOutcome:
        with ExecutionTimer() as timer:
            try:
                job = self.read_job(message)
            except ValidationException as e:
                logger.error(f"Dropping message {message.id}: {e}")
                await self._finish(message)
                return SegmentOutcome.FATAL_FAILURE

            logger.info(f"Segment {job.segment_idx} of video {job.video_id} received [{message.id}]: {job.uri}")

            async with LeaseKeeper(message, self.lease_margin_seconds):
                try:
                    result = await self._process(job)
                except Exception as e:
                    logger.exception(f"Unexpected error processing message {message.id}: {e}")
                    result = SequenceFailed(fatal=False, error=e)

            if isinstance(result, SequenceDone):
                await self._finish(message)
                logger.info(
                    f"Segment {job.segment_idx} of video {job.video_id} done: "
                    f"{len(result.frame_map)} frames in {timer.elapsed:.2f}s"
                )
                return SegmentOutcome.SUCCESS

            if result.fatal:
                await self._finish(message)
                logger.error(
                    f"Segment {job.segment_idx} of video {job.video_id} dropped after fatal error: {result.error}"
                )
                return SegmentOutcome.FATAL_FAILURE

            logger.warning(
                f"Segment {job.segment_idx} of video {job.video_id} failed, leaving message "
                f"{message.id} for redelivery: {result.error}"
            )
            return SegmentOutcome.TRANSIENT_FAILURE
