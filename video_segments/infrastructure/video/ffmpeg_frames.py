"""FFmpeg implementation of frame extraction."""

import asyncio
import os
import subprocess
from pathlib import Path

from video_segments.commons.telemetry import get_logger, timed
from video_segments.domain.exceptions import ExtractionError
from video_segments.domain.models import ExtractedFrameFile
from video_segments.infrastructure.video.base import FrameExtractorBase


def build_output_pattern(stem: str, format_hint: str) -> str:
    """Output name pattern for ffmpeg's image2 muxer: ``<stem>_%d.<format>``.

    A literal ``%`` in the stem is written as ``%%`` so the muxer does not
    read it as a sequence placeholder.
    """
    return f"{stem.replace('%', '%%')}_%d.{format_hint.lstrip('.')}"


class FFmpegFrameExtractor(FrameExtractorBase):
    """FFmpeg-based frame extraction.

    Requires ffmpeg to be installed and available in PATH.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self._ffmpeg = ffmpeg_path
        self._logger = get_logger(__name__)

    @timed
    async def extract(
        self,
        video_path: Path,
        format_hint: str,
        target_dir: Path,
        stem: str | None = None,
    ) -> list[ExtractedFrameFile]:
        """Extract every frame into ``target_dir`` as ``<stem>_<n>.<format>``."""
        pattern = target_dir / build_output_pattern(
            stem or video_path.stem, format_hint
        )

        self._logger.debug(
            "Extracting frames",
            extra={"video": str(video_path), "pattern": str(pattern)},
        )

        cmd = [
            self._ffmpeg,
            "-v",
            "error",
            "-i",
            str(video_path),
            "-y",
            str(pattern),
        ]

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True, check=True),
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
            raise ExtractionError(
                str(video_path),
                f"ffmpeg exited with {e.returncode}{': ' + stderr if stderr else ''}",
            ) from e
        except OSError as e:
            raise ExtractionError(str(video_path), str(e)) from e

        # Directory listing order, as written by the tool
        frames = [
            ExtractedFrameFile.from_path(Path(entry.path))
            for entry in os.scandir(target_dir)
            if entry.is_file()
        ]

        self._logger.debug(
            "Frames extracted",
            extra={"video": str(video_path), "count": len(frames)},
        )
        return frames
