"""Domain models."""

from video_segments.domain.models.job import Job
from video_segments.domain.models.segment import JobResult, Segment, SegmentCreatedEvent
from video_segments.domain.models.video import (
    FRAME_INDEX_PATTERN,
    ExtractedFrameFile,
    VideoMetadata,
    parse_frame_index,
)

__all__ = [
    # Job
    "Job",
    # Video
    "VideoMetadata",
    "ExtractedFrameFile",
    "FRAME_INDEX_PATTERN",
    "parse_frame_index",
    # Segment
    "Segment",
    "SegmentCreatedEvent",
    "JobResult",
]
