"""Abstract base class for source downloading."""

from abc import ABC, abstractmethod
from pathlib import Path


class FetcherBase(ABC):
    """Abstract base class for downloading a remote source to a local file."""

    @abstractmethod
    async def fetch(self, uri: str, destination: Path) -> str | None:
        """Stream a remote resource into a local file.

        Partially written content is left in ``destination`` on failure; the
        caller owns its deletion.

        Args:
            uri: Remote resource location.
            destination: Local file to write to.

        Returns:
            Content type reported by the remote, if any.

        Raises:
            FetchError: The remote answered with a non-success status (fatal).
            FetchConnectionError: The remote could not be reached (transient).
        """

    async def close(self) -> None:
        """Release any held connections."""
