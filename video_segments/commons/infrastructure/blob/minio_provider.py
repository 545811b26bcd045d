"""MinIO implementation of object storage."""

import asyncio
from pathlib import Path
from urllib.parse import quote

from minio import Minio

from video_segments.commons.infrastructure.blob.base import BlobStorageBase
from video_segments.commons.telemetry import get_logger

DEFAULT_URL_TEMPLATE = "https://{bucket}.s3.amazonaws.com/{key}"


class MinioBlobStorage(BlobStorageBase):
    """MinIO client wrapper for object storage.

    Works with both MinIO (local development) and AWS S3 (production). The
    client is blocking, so every call runs in the default executor; one
    instance is safe to share across concurrent uploads.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = True,
        region: str | None = None,
        acl: str | None = "public-read",
        public_url_template: str = DEFAULT_URL_TEMPLATE,
        client: Minio | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "s3.amazonaws.com").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
            acl: Canned ACL applied to uploaded objects, None for bucket default.
            public_url_template: Format string for durable URIs, with
                ``{bucket}``, ``{key}`` and ``{endpoint}`` placeholders.
            client: Pre-built client, mainly for tests.
        """
        self._client = client or Minio(
            endpoint=endpoint,
            access_key=access_key or None,
            secret_key=secret_key or None,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        self._acl = acl
        self._url_template = public_url_template
        self._logger = get_logger(__name__)

    async def upload_file(
        self,
        bucket: str,
        key: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload a local file and return its durable URI."""
        loop = asyncio.get_running_loop()
        headers = {"x-amz-acl": self._acl} if self._acl else None

        self._logger.debug(
            "Uploading file to the bucket",
            extra={"file": str(local_path), "bucket": bucket, "key": key},
        )

        def _upload() -> None:
            self._client.fput_object(
                bucket_name=bucket,
                object_name=key,
                file_path=str(local_path),
                content_type=content_type,
                metadata=headers,
            )

        await loop.run_in_executor(None, _upload)

        uri = self.object_uri(bucket, key)
        self._logger.debug("File uploaded", extra={"uri": uri})
        return uri

    def object_uri(self, bucket: str, key: str) -> str:
        """Build the durable URI of an object."""
        return self._url_template.format(
            bucket=bucket,
            key=quote(key, safe="/"),
            endpoint=self._endpoint,
        )

    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._client.bucket_exists, bucket)
