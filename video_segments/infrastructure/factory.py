"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from video_segments.application.services import BatchUploader, SegmentationPipeline
from video_segments.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from video_segments.commons.infrastructure.queue import (
    InMemoryQueue,
    QueueBase,
    RedisQueue,
)
from video_segments.commons.settings.models import Settings
from video_segments.commons.telemetry import get_logger
from video_segments.infrastructure.http import FetcherBase, HttpFetcher
from video_segments.infrastructure.video import (
    FFmpegFrameExtractor,
    FFprobeMetadataProbe,
    FrameExtractorBase,
    MetadataProbeBase,
)

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches them, so one worker process shares a single store client,
    queue connection and HTTP client.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_blob_storage(self) -> BlobStorageBase:
        """Get object storage instance."""
        if "blob_storage" not in self._instances:
            storage = self._settings.storage
            self._instances["blob_storage"] = MinioBlobStorage(
                endpoint=storage.endpoint,
                access_key=storage.access_key,
                secret_key=storage.secret_key,
                secure=storage.use_ssl,
                region=storage.region,
                acl=storage.acl,
                public_url_template=storage.public_url_template,
            )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_queue(self) -> QueueBase:
        """Get queue transport instance.

        Raises:
            ValueError: If provider is not supported.
        """
        if "queue" not in self._instances:
            queue = self._settings.queue
            if queue.provider == "redis":
                self._instances["queue"] = RedisQueue(
                    url=queue.url,
                    block_timeout_seconds=queue.block_timeout_seconds,
                    consumer_name=queue.consumer_name,
                )
            elif queue.provider == "memory":
                self._instances["queue"] = InMemoryQueue()
            else:
                raise ValueError(f"Unsupported queue provider: {queue.provider}")
        return cast("QueueBase", self._instances["queue"])

    def get_fetcher(self) -> FetcherBase:
        """Get source fetcher instance."""
        if "fetcher" not in self._instances:
            http = self._settings.http
            self._instances["fetcher"] = HttpFetcher(
                timeout_seconds=http.timeout_seconds,
                connect_timeout_seconds=http.connect_timeout_seconds,
                chunk_size=http.chunk_size,
                follow_redirects=http.follow_redirects,
            )
        return cast("FetcherBase", self._instances["fetcher"])

    def get_metadata_probe(self) -> MetadataProbeBase:
        """Get video metadata probe instance."""
        if "metadata_probe" not in self._instances:
            self._instances["metadata_probe"] = FFprobeMetadataProbe(
                ffprobe_path=self._settings.processing.ffprobe_path,
            )
        return cast("MetadataProbeBase", self._instances["metadata_probe"])

    def get_frame_extractor(self) -> FrameExtractorBase:
        """Get frame extractor instance."""
        if "frame_extractor" not in self._instances:
            self._instances["frame_extractor"] = FFmpegFrameExtractor(
                ffmpeg_path=self._settings.processing.ffmpeg_path,
            )
        return cast("FrameExtractorBase", self._instances["frame_extractor"])

    def get_pipeline(self) -> SegmentationPipeline:
        """Get the segmentation pipeline wired to the shared services."""
        if "pipeline" not in self._instances:
            self._instances["pipeline"] = SegmentationPipeline(
                fetcher=self.get_fetcher(),
                probe=self.get_metadata_probe(),
                extractor=self.get_frame_extractor(),
                uploader=BatchUploader(self.get_blob_storage()),
                settings=self._settings,
            )
        return cast("SegmentationPipeline", self._instances["pipeline"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception:
                logger.warning("Failed to close %s", name, exc_info=True)

        self._instances.clear()
