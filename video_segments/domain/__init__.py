"""Domain layer - jobs, segments and classified errors."""

from video_segments.domain.exceptions import (
    ExtractionError,
    FatalError,
    FetchConnectionError,
    FetchError,
    FrameNamingError,
    InvalidJobError,
    PipelineError,
    ProbeError,
    TransientError,
    UploadError,
)
from video_segments.domain.models import (
    ExtractedFrameFile,
    Job,
    JobResult,
    Segment,
    SegmentCreatedEvent,
    VideoMetadata,
    parse_frame_index,
)

__all__ = [
    # Exceptions
    "PipelineError",
    "FatalError",
    "TransientError",
    "InvalidJobError",
    "FetchError",
    "FetchConnectionError",
    "ProbeError",
    "ExtractionError",
    "FrameNamingError",
    "UploadError",
    # Models
    "Job",
    "VideoMetadata",
    "ExtractedFrameFile",
    "parse_frame_index",
    "Segment",
    "SegmentCreatedEvent",
    "JobResult",
]
