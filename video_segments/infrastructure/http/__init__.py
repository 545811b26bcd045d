"""Source download services."""

from video_segments.infrastructure.http.base import FetcherBase
from video_segments.infrastructure.http.fetcher import HttpFetcher

__all__ = [
    "FetcherBase",
    "HttpFetcher",
]
