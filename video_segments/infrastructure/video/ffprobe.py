"""ffprobe implementation of video metadata probing."""

import asyncio
import json
import subprocess
from pathlib import Path
from typing import Any

from video_segments.commons.telemetry import get_logger, timed
from video_segments.domain.exceptions import ProbeError
from video_segments.domain.models import VideoMetadata
from video_segments.infrastructure.video.base import MetadataProbeBase


def parse_frame_rate(value: str) -> float:
    """Parse an ffprobe rate such as ``30000/1001`` or ``25``.

    Raises:
        ValueError: If the value is malformed, zero or negative.
    """
    if "/" in value:
        num, den = value.split("/", 1)
        if float(den) == 0:
            msg = f"Zero denominator in frame rate '{value}'"
            raise ValueError(msg)
        rate = float(num) / float(den)
    else:
        rate = float(value)
    if rate <= 0:
        msg = f"Non-positive frame rate '{value}'"
        raise ValueError(msg)
    return rate


class FFprobeMetadataProbe(MetadataProbeBase):
    """ffprobe-based metadata probe.

    Requires ffprobe to be installed and available in PATH.
    """

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        self._ffprobe = ffprobe_path
        self._logger = get_logger(__name__)

    @timed
    async def probe(self, video_path: Path) -> VideoMetadata:
        """Read container and stream metadata of a local video."""
        cmd = [
            self._ffprobe,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(video_path),
        ]

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True, check=True),
            )
            data = json.loads(result.stdout)
            metadata = self._parse(data)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
            raise ProbeError(
                str(video_path),
                f"ffprobe exited with {e.returncode}{': ' + stderr if stderr else ''}",
            ) from e
        except (OSError, ValueError) as e:
            raise ProbeError(str(video_path), str(e)) from e

        self._logger.debug(
            "Video metadata probed",
            extra={
                "path": str(video_path),
                "fps": metadata.frame_rate,
                "duration_seconds": metadata.duration_seconds,
            },
        )
        return metadata

    def _parse(self, data: dict[str, Any]) -> VideoMetadata:
        video_stream = next(
            (s for s in data.get("streams", []) if s.get("codec_type") == "video"),
            None,
        )
        if video_stream is None:
            msg = "No video stream found"
            raise ValueError(msg)

        try:
            frame_rate = parse_frame_rate(video_stream.get("avg_frame_rate", ""))
        except ValueError:
            frame_rate = parse_frame_rate(video_stream.get("r_frame_rate", ""))

        format_info = data.get("format", {})
        duration = format_info.get("duration") or video_stream.get("duration") or 0

        return VideoMetadata(
            frame_rate=frame_rate,
            duration_seconds=float(duration),
        )
