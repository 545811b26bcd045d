"""Shared fixtures and in-memory collaborators for the worker tests."""

import asyncio
import random
import shutil
from pathlib import Path

import pytest

from video_segments.application.services import (
    BatchUploader,
    PipelineObserver,
    SegmentationPipeline,
)
from video_segments.application.services import resources as resources_module
from video_segments.commons.infrastructure.blob.base import BlobStorageBase
from video_segments.commons.settings.models import (
    ProcessingSettings,
    Settings,
    StorageSettings,
)
from video_segments.domain.models import ExtractedFrameFile, VideoMetadata
from video_segments.infrastructure.http.base import FetcherBase
from video_segments.infrastructure.video.base import (
    FrameExtractorBase,
    MetadataProbeBase,
)

# =============================================================================
# Collaborator doubles
# =============================================================================


class FakeBlobStorage(BlobStorageBase):
    """Object store that keeps uploads in memory and tracks concurrency."""

    def __init__(
        self, fail_keys=(), delay: float = 0.01, bucket_present: bool = True
    ) -> None:
        self.bucket_present = bucket_present
        self.fail_keys = set(fail_keys)
        self.delay = delay
        self.calls: list[str] = []
        self.uploads: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def upload_file(
        self, bucket, key, local_path, content_type="application/octet-stream"
    ):
        self.calls.append(key)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if key in self.fail_keys:
                raise ConnectionError("store temporarily unavailable")
            self.uploads[key] = Path(local_path).read_bytes()
            self.content_types[key] = content_type
            return self.object_uri(bucket, key)
        finally:
            self.in_flight -= 1

    def object_uri(self, bucket, key):
        return f"https://{bucket}.s3.amazonaws.com/{key}"

    async def bucket_exists(self, bucket):
        return self.bucket_present


class FakeFetcher(FetcherBase):
    """Writes fixed bytes to the destination, or raises a configured error."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, Path]] = []

    async def fetch(self, uri, destination):
        self.calls.append((uri, destination))
        if self.error is not None:
            raise self.error
        destination.write_bytes(b"fake video content")
        return "video/mp4"


class FakeProbe(MetadataProbeBase):
    """Returns fixed metadata, or raises a configured error."""

    def __init__(self, frame_rate: float = 25.0, error: Exception | None = None):
        self.frame_rate = frame_rate
        self.error = error
        self.calls: list[Path] = []

    async def probe(self, video_path):
        self.calls.append(video_path)
        if self.error is not None:
            raise self.error
        return VideoMetadata(frame_rate=self.frame_rate, duration_seconds=1.0)


class FakeExtractor(FrameExtractorBase):
    """Writes ``count`` frame files, in shuffled order, like an unsorted listing."""

    def __init__(self, count: int = 2, error: Exception | None = None) -> None:
        self.count = count
        self.error = error
        self.calls: list[tuple[Path, str, Path, str | None]] = []
        self.video_existed: list[bool] = []

    async def extract(self, video_path, format_hint, target_dir, stem=None):
        self.calls.append((video_path, format_hint, target_dir, stem))
        self.video_existed.append(video_path.exists())
        if self.error is not None:
            raise self.error
        frames = []
        for i in range(1, self.count + 1):
            path = target_dir / f"{stem or video_path.stem}_{i}.{format_hint}"
            path.write_bytes(f"frame {i}".encode())
            frames.append(ExtractedFrameFile(path=path, index=i))
        random.Random(self.count).shuffle(frames)
        return frames


class RecordingObserver(PipelineObserver):
    """Collects every pipeline notification."""

    def __init__(self) -> None:
        self.segments = []
        self.errors = []
        self.ends = []

    async def on_segment(self, segment):
        self.segments.append(segment)

    async def on_error(self, error):
        self.errors.append(error)

    async def on_end(self, result):
        self.ends.append(result)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_root(tmp_path):
    """Directory the pipeline creates its temporary resources in."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def settings(temp_root):
    """Settings with a bucket and an isolated temp directory."""
    return Settings(
        storage=StorageSettings(bucket="test-bucket"),
        processing=ProcessingSettings(batch_size=10, temp_dir=str(temp_root)),
    )


@pytest.fixture
def blob_storage():
    return FakeBlobStorage()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_pipeline(settings, fetcher, probe, extractor, blob_storage):
    """Build a pipeline from the default doubles, overriding any of them."""

    def _make(**overrides):
        return SegmentationPipeline(
            fetcher=overrides.get("fetcher", fetcher),
            probe=overrides.get("probe", probe),
            extractor=overrides.get("extractor", extractor),
            uploader=BatchUploader(overrides.get("blob_storage", blob_storage)),
            settings=overrides.get("settings", settings),
        )

    return _make


@pytest.fixture
def frame_files(tmp_path):
    """Create ``count`` frame files named ``<stem>_<n>.jpg`` on disk."""

    def _make(count, stem="movie"):
        frames_dir = tmp_path / "frames"
        frames_dir.mkdir(exist_ok=True)
        frames = []
        for i in range(1, count + 1):
            path = frames_dir / f"{stem}_{i}.jpg"
            path.write_bytes(f"frame {i}".encode())
            frames.append(ExtractedFrameFile(path=path, index=i))
        return frames

    return _make


@pytest.fixture
def deletions(monkeypatch):
    """Count real deletions of temporary resources, per path."""
    counts: dict[Path, int] = {}
    real_rmtree = shutil.rmtree
    real_unlink = Path.unlink

    def counting_rmtree(path, *args, **kwargs):
        counts[Path(path)] = counts.get(Path(path), 0) + 1
        return real_rmtree(path, *args, **kwargs)

    def counting_unlink(self, *args, **kwargs):
        counts[Path(self)] = counts.get(Path(self), 0) + 1
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(resources_module.shutil, "rmtree", counting_rmtree)
    monkeypatch.setattr(Path, "unlink", counting_unlink)
    return counts


@pytest.fixture
def acquired_handles(monkeypatch):
    """Record every handle acquired through a ResourceScope."""
    handles = []
    scope_cls = resources_module.ResourceScope
    real_file = scope_cls.acquire_file
    real_dir = scope_cls.acquire_dir

    def record_file(self, suffix=""):
        handle = real_file(self, suffix)
        handles.append(handle)
        return handle

    def record_dir(self):
        handle = real_dir(self)
        handles.append(handle)
        return handle

    monkeypatch.setattr(scope_cls, "acquire_file", record_file)
    monkeypatch.setattr(scope_cls, "acquire_dir", record_dir)
    return handles


@pytest.fixture
def doubles():
    """Expose the double classes to tests that need custom instances."""
    return {
        "blob_storage": FakeBlobStorage,
        "fetcher": FakeFetcher,
        "probe": FakeProbe,
        "extractor": FakeExtractor,
        "observer": RecordingObserver,
    }
