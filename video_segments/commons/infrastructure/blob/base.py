"""Abstract base class for object storage operations."""

from abc import ABC, abstractmethod
from pathlib import Path


class BlobStorageBase(ABC):
    """Abstract base class for object storage operations.

    Implementations should handle:
    - AWS S3
    - MinIO (local development)
    """

    @abstractmethod
    async def upload_file(
        self,
        bucket: str,
        key: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload a local file and return its durable URI.

        The file is streamed from disk; it is never loaded into memory whole.

        Args:
            bucket: Target bucket name.
            key: Object key within the bucket.
            local_path: File to upload.
            content_type: MIME type of the content.

        Returns:
            Durable URI of the stored object.
        """

    @abstractmethod
    def object_uri(self, bucket: str, key: str) -> str:
        """Build the durable URI of an object.

        Args:
            bucket: Bucket name.
            key: Object key within the bucket.

        Returns:
            Full object URI.
        """

    @abstractmethod
    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists and is reachable with the configured keys."""
