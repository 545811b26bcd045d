"""Bounded-concurrency batch upload of extracted frames."""

import asyncio
import math
import mimetypes
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from video_segments.commons.infrastructure.blob.base import BlobStorageBase
from video_segments.commons.telemetry import get_logger
from video_segments.domain.exceptions import FatalError, PipelineError, UploadError
from video_segments.domain.models import ExtractedFrameFile, JobResult, Segment

T = TypeVar("T")

SegmentCallback = Callable[[Segment], Awaitable[None]]


def partition(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """Split items into consecutive batches of at most ``batch_size``.

    Produces ceil(len(items) / batch_size) batches, and a single empty batch
    for an empty sequence.

    Raises:
        ValueError: If batch_size is smaller than 1.
    """
    if batch_size < 1:
        msg = f"batch_size must be at least 1, got {batch_size}"
        raise ValueError(msg)
    count = max(1, math.ceil(len(items) / batch_size))
    return [
        list(items[i * batch_size : (i + 1) * batch_size]) for i in range(count)
    ]


class BatchUploader:
    """Uploads frame files to object storage in sequential batches.

    Uploads within a batch run concurrently; a batch starts only after the
    previous one has fully resolved, so at most ``batch_size`` uploads are
    outstanding at any time.
    """

    def __init__(self, storage: BlobStorageBase) -> None:
        self._storage = storage
        self._logger = get_logger(__name__)

    async def upload_all(
        self,
        frames: Sequence[ExtractedFrameFile],
        frame_rate: float,
        bucket: str,
        subdir: str,
        batch_size: int,
        on_segment: SegmentCallback,
    ) -> JobResult:
        """Upload every frame and collect an index -> URI mapping.

        Args:
            frames: Extracted frames, in any order.
            frame_rate: Frame rate copied onto every segment.
            bucket: Destination bucket.
            subdir: Key prefix; keys are ``<subdir>/<file name>``.
            batch_size: Maximum number of concurrent uploads.
            on_segment: Awaited once per uploaded frame, before that upload
                counts as complete.

        Returns:
            Mapping of frame index to durable URI.

        Raises:
            UploadError: If the store fails an upload (transient).
            FatalError: If two frames carry the same index.
        """
        batches = partition(frames, batch_size)
        self._logger.debug(
            "Video segments processing broken into batches",
            extra={"frames": len(frames), "batches": len(batches)},
        )

        result: JobResult = {}
        for number, batch in enumerate(batches, start=1):
            self._logger.debug(
                "Executing batch",
                extra={"batch": number, "size": len(batch)},
            )
            outcomes = await asyncio.gather(
                *(
                    self._upload_one(frame, frame_rate, bucket, subdir, on_segment)
                    for frame in batch
                ),
                return_exceptions=True,
            )

            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    self._logger.debug(
                        "Batch failed",
                        extra={"batch": number, "error": str(outcome)},
                    )
                    raise outcome

            for index, uri in outcomes:  # type: ignore[misc]
                if index in result:
                    raise FatalError(
                        f"Duplicate segment index {index}",
                        stage="upload",
                    )
                result[index] = uri

            self._logger.debug("Batch processed successfully", extra={"batch": number})

        return result

    async def _upload_one(
        self,
        frame: ExtractedFrameFile,
        frame_rate: float,
        bucket: str,
        subdir: str,
        on_segment: SegmentCallback,
    ) -> tuple[int, str]:
        key = f"{subdir}/{frame.name}" if subdir else frame.name
        content_type = mimetypes.guess_type(frame.name)[0] or "application/octet-stream"

        try:
            uri = await self._storage.upload_file(bucket, key, frame.path, content_type)
        except PipelineError:
            raise
        except Exception as e:
            raise UploadError(key, str(e) or type(e).__name__) from e

        await on_segment(Segment(index=frame.index, uri=uri, frame_rate=frame_rate))
        return frame.index, uri
