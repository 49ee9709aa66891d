"""
vframes - queue-driven worker that turns video segments into uploaded frames.
"""

from .models import SegmentJob, Frame, FrameCreatedEvent, SegmentOutcome
from .pipeline import FrameSequencer, FramePublisher, LeaseAwareConsumer, run_batched

__version__ = "1.0.0"

__all__ = [
    "SegmentJob",
    "Frame",
    "FrameCreatedEvent",
    "SegmentOutcome",
    "FrameSequencer",
    "FramePublisher",
    "LeaseAwareConsumer",
    "run_batched",
]
