"""
Data models for the frame extraction worker.

Wire formats (segment jobs and frame-created events) are pydantic models with
camelCase aliases; in-process values are plain dataclasses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union
from pydantic import BaseModel, ConfigDict, Field


class SegmentJob(BaseModel):
    """A request to extract the frames of one video segment."""
    # numeric video ids are accepted and carried as strings
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    video_id: str = Field(..., alias="videoId", min_length=1)
    segment_idx: int = Field(..., alias="segmentIdx", ge=0)
    uri: str = Field(..., min_length=1)
    fps: float = Field(..., gt=0)
    frames_per_segment: int = Field(..., alias="framesPerSegment", ge=0)


class FrameCreatedEvent(BaseModel):
    """Body of the event published for every uploaded frame."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    video_id: str = Field(..., alias="videoId")
    segment_idx: int = Field(..., alias="segmentIdx")
    fps: float
    frames_per_segment: int = Field(..., alias="framesPerSegment")
    frame_idx: int = Field(..., alias="frameIdx")
    uri: str

    def to_payload(self) -> Dict:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class DecodedFrame:
    """A frame image written by a decoder, with its zero-based position in the segment."""
    index: int
    path: str


@dataclass(frozen=True)
class Frame:
    """An uploaded frame: decoded index and public object URI."""
    idx: int
    uri: str


FrameMap = Dict[int, str]


@dataclass(frozen=True)
class FrameProgress:
    frame: Frame


@dataclass(frozen=True)
class SequenceDone:
    frame_map: FrameMap


@dataclass(frozen=True)
class SequenceFailed:
    fatal: bool
    error: BaseException


SequenceEvent = Union[FrameProgress, SequenceDone, SequenceFailed]


class SegmentOutcome(str, Enum):
    """How a segment message was settled."""
    SUCCESS = "success"
    FATAL_FAILURE = "fatal_failure"
    TRANSIENT_FAILURE = "transient_failure"
