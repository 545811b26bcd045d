"""Video and frame file domain models."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from video_segments.domain.exceptions import FrameNamingError

# Index suffix of an extracted frame: the last "_<digits>" before the extension
FRAME_INDEX_PATTERN = re.compile(r"_(\d+)(?:\.[^.]*)?$")


@dataclass(frozen=True)
class VideoMetadata:
    """Container and stream metadata of a probed video."""

    frame_rate: float
    duration_seconds: float = 0.0


def parse_frame_index(file_name: str) -> int:
    """Parse the ordinal index embedded in a frame file name.

    Args:
        file_name: Base name such as ``movie_3.jpg``.

    Returns:
        The embedded index.

    Raises:
        FrameNamingError: If the name does not end in ``_<digits>.<ext>``.
    """
    match = FRAME_INDEX_PATTERN.search(file_name)
    if match is None:
        raise FrameNamingError(file_name)
    return int(match.group(1))


@dataclass(frozen=True)
class ExtractedFrameFile:
    """A frame file produced by the extractor, with its parsed index."""

    path: Path
    index: int

    @classmethod
    def from_path(cls, path: Path) -> ExtractedFrameFile:
        """Build from an output path, parsing the index from its name."""
        return cls(path=path, index=parse_frame_index(path.name))

    @property
    def name(self) -> str:
        return self.path.name
