"""Worker process - queue consumption and CLI entry point."""

from video_segments.worker.consumer import (
    JobConsumer,
    MessageOutcome,
    SegmentEventPublisher,
)

__all__ = [
    "JobConsumer",
    "MessageOutcome",
    "SegmentEventPublisher",
]
