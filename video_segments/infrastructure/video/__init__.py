"""Video processing services."""

from video_segments.infrastructure.video.base import (
    FrameExtractorBase,
    MetadataProbeBase,
)
from video_segments.infrastructure.video.ffmpeg_frames import (
    FFmpegFrameExtractor,
    build_output_pattern,
)
from video_segments.infrastructure.video.ffprobe import (
    FFprobeMetadataProbe,
    parse_frame_rate,
)

__all__ = [
    # Base classes
    "MetadataProbeBase",
    "FrameExtractorBase",
    # Implementations
    "FFprobeMetadataProbe",
    "FFmpegFrameExtractor",
    # Helpers
    "build_output_pattern",
    "parse_frame_rate",
]
