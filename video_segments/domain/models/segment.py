"""Segment domain models published downstream."""

import json
from dataclasses import dataclass

from pydantic import BaseModel, Field

# Index -> durable URI of every uploaded segment of one job
JobResult = dict[int, str]


@dataclass(frozen=True)
class Segment:
    """One uploaded frame with its ordinal index and durable location."""

    index: int
    uri: str
    frame_rate: float


class SegmentCreatedEvent(BaseModel):
    """Event announcing an uploaded segment to downstream consumers."""

    video_id: str = Field(description="Id of the job the segment belongs to")
    segment_idx: int = Field(ge=0, description="Ordinal index of the frame")
    segment_uri: str = Field(description="Durable URI of the uploaded frame")
    fps: float = Field(description="Frame rate of the source video")

    @classmethod
    def from_segment(cls, video_id: str, segment: Segment) -> "SegmentCreatedEvent":
        """Build the event for a segment of the given video."""
        return cls(
            video_id=video_id,
            segment_idx=segment.index,
            segment_uri=segment.uri,
            fps=segment.frame_rate,
        )

    def to_message(self) -> str:
        """Serialize to the JSON wire form.

        The ``uri`` key duplicates ``segment_uri`` for consumers that read the
        older event layout.
        """
        payload = self.model_dump()
        payload["uri"] = self.segment_uri
        return json.dumps(payload, sort_keys=True)
