"""Segmentation pipeline orchestration service."""

from pathlib import Path

from video_segments.application.services.resources import ResourceScope
from video_segments.application.services.uploader import BatchUploader
from video_segments.commons.settings.models import Settings
from video_segments.commons.telemetry import LogContext, get_logger, timed
from video_segments.domain.exceptions import FatalError, PipelineError, TransientError
from video_segments.domain.models import Job, JobResult, Segment
from video_segments.infrastructure.http.base import FetcherBase
from video_segments.infrastructure.video.base import (
    FrameExtractorBase,
    MetadataProbeBase,
)


class PipelineObserver:
    """Receives notifications from a pipeline run.

    Subclasses override what they need; every hook is a no-op by default.
    """

    async def on_segment(self, segment: Segment) -> None:
        """Called once per uploaded segment, in upload-completion order."""

    async def on_error(self, error: PipelineError) -> None:
        """Called once when the run fails, before the error is raised."""

    async def on_end(self, result: JobResult) -> None:
        """Called once when the run succeeds, before the result is returned."""


class SegmentationPipeline:
    """Orchestrates segmentation of one video job.

    Pipeline steps:
    1. Download the source into a temporary file
    2. Probe video metadata (frame rate)
    3. Extract frames into a temporary directory
    4. Delete the temporary file
    5. Upload frames in sequential batches, emitting one segment each
    6. Delete the temporary directory

    Stage errors are forwarded with their fatal/transient classification;
    nothing is retried here. Redelivery is left to the queue.
    """

    def __init__(
        self,
        fetcher: FetcherBase,
        probe: MetadataProbeBase,
        extractor: FrameExtractorBase,
        uploader: BatchUploader,
        settings: Settings,
    ) -> None:
        """Initialize the pipeline with its collaborators.

        Args:
            fetcher: Source downloader.
            probe: Video metadata probe.
            extractor: Frame extractor.
            uploader: Batch uploader bound to the object store.
            settings: Application settings.
        """
        self._fetcher = fetcher
        self._probe = probe
        self._extractor = extractor
        self._uploader = uploader
        self._logger = get_logger(__name__)

        self._bucket = settings.storage.bucket
        self._batch_size = settings.processing.batch_size
        self._frame_format = settings.processing.frame_format
        temp_dir = settings.processing.temp_dir
        self._temp_root = Path(temp_dir) if temp_dir else None

    @timed
    async def run(
        self,
        job: Job,
        observer: PipelineObserver | None = None,
    ) -> JobResult:
        """Segment the job's video and upload every frame.

        Args:
            job: The job to process.
            observer: Receives segment, error and end notifications.

        Returns:
            Mapping of segment index to durable URI.

        Raises:
            PipelineError: Classified failure of any stage. Unclassified
                exceptions are raised as TransientError.
        """
        observer = observer or PipelineObserver()

        with LogContext(video_id=job.id, source_uri=job.source_uri):
            try:
                result = await self._process(job, observer)
            except PipelineError as e:
                await self._report_error(observer, e)
                raise
            except Exception as e:
                error = TransientError(
                    f"Unexpected failure while processing {job.source_uri}: {e!r}",
                    stage="pipeline",
                )
                await self._report_error(observer, error)
                raise error from e

            self._logger.info(
                "All video segments processed and uploaded",
                extra={"segments": len(result)},
            )
            await observer.on_end(result)
            return result

    async def _process(self, job: Job, observer: PipelineObserver) -> JobResult:
        async with ResourceScope(root=self._temp_root) as scope:
            video_file = scope.acquire_file(suffix=Path(job.source_name).suffix)

            content_type = await self._fetcher.fetch(job.source_uri, video_file.path)
            metadata = await self._probe.probe(video_file.path)
            self._logger.debug(
                "Source downloaded and probed",
                extra={"fps": metadata.frame_rate, "content_type": content_type},
            )

            frames_dir = scope.acquire_dir()
            try:
                frames = await self._extractor.extract(
                    video_file.path,
                    self._frame_format,
                    frames_dir.path,
                    stem=job.source_stem,
                )
            finally:
                await video_file.arelease()

            self._logger.info(
                "Segments extracted from video",
                extra={"segments": len(frames)},
            )

            try:
                result = await self._uploader.upload_all(
                    frames,
                    frame_rate=metadata.frame_rate,
                    bucket=self._bucket,
                    subdir=job.source_stem,
                    batch_size=self._batch_size,
                    on_segment=observer.on_segment,
                )
            finally:
                await frames_dir.arelease()

        missing = {frame.index for frame in frames} - result.keys()
        if missing:
            raise FatalError(
                f"Segments missing from result: {sorted(missing)}",
                stage="upload",
            )
        return result

    async def _report_error(
        self,
        observer: PipelineObserver,
        error: PipelineError,
    ) -> None:
        self._logger.debug(
            "Pipeline stage failed",
            extra={"stage": error.stage, "fatal": error.fatal, "error": str(error)},
        )
        await observer.on_error(error)
