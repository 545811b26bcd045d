"""Object storage abstractions and implementations."""

from video_segments.commons.infrastructure.blob.base import BlobStorageBase
from video_segments.commons.infrastructure.blob.minio_provider import (
    DEFAULT_URL_TEMPLATE,
    MinioBlobStorage,
)

__all__ = [
    # Base classes
    "BlobStorageBase",
    # Implementations
    "MinioBlobStorage",
    "DEFAULT_URL_TEMPLATE",
]
