"""httpx implementation of source downloading."""

import asyncio
from pathlib import Path

import httpx

from video_segments.commons.telemetry import get_logger, timed
from video_segments.domain.exceptions import (
    FatalError,
    FetchConnectionError,
    FetchError,
    TransientError,
)
from video_segments.infrastructure.http.base import FetcherBase


class HttpFetcher(FetcherBase):
    """Streams remote sources to disk with an ``httpx.AsyncClient``.

    The response body is written chunk by chunk on the default executor; it
    is never held in memory whole.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60.0,
        connect_timeout_seconds: float = 10.0,
        chunk_size: int = 64 * 1024,
        follow_redirects: bool = True,
    ) -> None:
        """Initialize the fetcher.

        Args:
            client: Pre-built client; one is created when omitted.
            timeout_seconds: Read/write/pool timeout.
            connect_timeout_seconds: Connection timeout.
            chunk_size: Bytes written per chunk.
            follow_redirects: Follow HTTP redirects.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds),
            follow_redirects=follow_redirects,
        )
        self._chunk_size = chunk_size
        self._logger = get_logger(__name__)

    @timed
    async def fetch(self, uri: str, destination: Path) -> str | None:
        """Stream a remote resource into a local file."""
        self._logger.debug(
            "Downloading source",
            extra={"uri": uri, "destination": str(destination)},
        )

        try:
            async with self._client.stream("GET", uri) as response:
                if not response.is_success:
                    raise FetchError(uri, response.status_code)

                content_type = response.headers.get("content-type")
                written = 0
                loop = asyncio.get_running_loop()
                with destination.open("wb") as f:
                    async for chunk in response.aiter_bytes(self._chunk_size):
                        await loop.run_in_executor(None, f.write, chunk)
                        written += len(chunk)
        except httpx.TransportError as e:
            self._logger.debug(
                "Downloading source failed",
                extra={"uri": uri, "error": repr(e)},
            )
            raise FetchConnectionError(uri, str(e) or type(e).__name__) from e
        except httpx.RequestError as e:
            # Redirect loops and undecodable bodies do not heal on retry
            raise FatalError(
                f"Downloading {uri} failed: {e}",
                stage="fetch",
            ) from e
        except OSError as e:
            raise TransientError(
                f"Writing {uri} to {destination} failed: {e}",
                stage="fetch",
            ) from e

        self._logger.debug(
            "Downloading source completed",
            extra={"uri": uri, "bytes": written, "content_type": content_type},
        )
        return content_type

    async def close(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
