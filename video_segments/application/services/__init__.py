"""Application services - resource scoping, batch upload and orchestration."""

from video_segments.application.services.resources import ResourceScope, TempHandle
from video_segments.application.services.segmentation import (
    PipelineObserver,
    SegmentationPipeline,
)
from video_segments.application.services.uploader import (
    BatchUploader,
    SegmentCallback,
    partition,
)

__all__ = [
    # Resources
    "ResourceScope",
    "TempHandle",
    # Upload
    "BatchUploader",
    "SegmentCallback",
    "partition",
    # Orchestration
    "SegmentationPipeline",
    "PipelineObserver",
]
