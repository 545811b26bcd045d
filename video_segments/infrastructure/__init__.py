"""Infrastructure layer - external tool and transport implementations."""

from video_segments.infrastructure.http import FetcherBase, HttpFetcher
from video_segments.infrastructure.video import (
    FFmpegFrameExtractor,
    FFprobeMetadataProbe,
    FrameExtractorBase,
    MetadataProbeBase,
)

__all__ = [
    # Download
    "FetcherBase",
    "HttpFetcher",
    # Video
    "MetadataProbeBase",
    "FrameExtractorBase",
    "FFprobeMetadataProbe",
    "FFmpegFrameExtractor",
]
