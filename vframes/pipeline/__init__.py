from .batch_scheduler import partition, run_batched
from .downloader import SegmentDownloader
from .sequencer import FrameSequencer, compute_stride, select_frames, frame_key
from .frame_publisher import FramePublisher, absolute_frame_index
from .consumer import LeaseKeeper, LeaseAwareConsumer

__all__ = [
    "partition",
    "run_batched",
    "SegmentDownloader",
    "FrameSequencer",
    "compute_stride",
    "select_frames",
    "frame_key",
    "FramePublisher",
    "absolute_frame_index",
    "LeaseKeeper",
    "LeaseAwareConsumer",
]
