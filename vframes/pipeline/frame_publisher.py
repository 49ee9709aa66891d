from loguru import logger
from ..exceptions import PublishException
from ..models import Frame, FrameCreatedEvent
from ..providers.base import EventPublisherProvider


def absolute_frame_index(segment_idx: int, frames_per_segment: int, local_idx: int) -> int:
    """Position of a frame in the whole video."""
    return segment_idx * frames_per_segment + local_idx


class FramePublisher:
    """Publishes a frame-created event for every uploaded frame."""

    def __init__(self, provider: EventPublisherProvider, topic: str = "video-frames"):
        self.provider = provider
        self.topic = topic

    async def publish(self, video_id: str, segment_idx: int, fps: float, frames_per_segment: int,
                      frame: Frame) -> FrameCreatedEvent:
        """
        Raises:
            PublishException: the event could not be delivered to the topic
        """
        event = FrameCreatedEvent(
            video_id=video_id,
            segment_idx=segment_idx,
            fps=fps,
            frames_per_segment=frames_per_segment,
            frame_idx=absolute_frame_index(segment_idx, frames_per_segment, frame.idx),
            uri=frame.uri,
        )
        try:
            await self.provider.publish(self.topic, event.to_payload())
        except PublishException:
            raise
        except Exception as e:
            raise PublishException(
                f"Failed to publish frame {event.frame_idx} of video {video_id}: {e}",
                error_code="PUBLISH_ERROR",
                details={"topic": self.topic, "original_exception": type(e).__name__},
            ) from e
        logger.debug(f"Frame {event.frame_idx} of video {video_id} published to {self.topic}")
        return event
