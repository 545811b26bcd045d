"""Abstract base classes for video inspection and frame extraction."""

from abc import ABC, abstractmethod
from pathlib import Path

from video_segments.domain.models import ExtractedFrameFile, VideoMetadata


class MetadataProbeBase(ABC):
    """Abstract base class for reading video metadata.

    Implementations should handle:
    - ffprobe (subprocess)
    """

    @abstractmethod
    async def probe(self, video_path: Path) -> VideoMetadata:
        """Read container and stream metadata of a local video.

        Args:
            video_path: Path to the video file.

        Returns:
            Video metadata, including the frame rate.

        Raises:
            ProbeError: If the file cannot be inspected (fatal).
        """


class FrameExtractorBase(ABC):
    """Abstract base class for splitting a video into indexed frame files.

    Implementations should handle:
    - FFmpeg (subprocess)
    """

    @abstractmethod
    async def extract(
        self,
        video_path: Path,
        format_hint: str,
        target_dir: Path,
        stem: str | None = None,
    ) -> list[ExtractedFrameFile]:
        """Extract every frame into ``target_dir`` as ``<stem>_<n>.<format>``.

        Args:
            video_path: Path to input video.
            format_hint: Output file format (extension), e.g. ``jpg``.
            target_dir: Empty directory to write frames to.
            stem: Output name prefix, defaults to the video's base name
                without extension.

        Returns:
            Produced frames in the order the tool wrote them, which is not
            necessarily index order.

        Raises:
            ExtractionError: If the tool fails (fatal).
            FrameNamingError: If an output file does not carry an index (fatal).
        """
