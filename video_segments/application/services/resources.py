"""Per-job temporary file and directory lifetime management."""

import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from video_segments.commons.telemetry import get_logger

logger = get_logger(__name__)


class TempHandle:
    """A temporary file or directory owned by a :class:`ResourceScope`.

    ``release`` deletes the location; calling it again is a no-op, and a
    location that is already gone counts as released.
    """

    def __init__(self, path: Path, *, is_dir: bool) -> None:
        self.path = path
        self.is_dir = is_dir
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        try:
            if self.is_dir:
                shutil.rmtree(self.path)
            else:
                self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                "Failed to remove temporary resource",
                extra={"path": str(self.path), "error": str(e)},
            )
        else:
            logger.debug("Temporary resource removed", extra={"path": str(self.path)})

    async def arelease(self) -> None:
        """Release on the default executor; removing a frame directory blocks."""
        if self.released:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.release)

    def __repr__(self) -> str:
        kind = "dir" if self.is_dir else "file"
        return f"TempHandle({kind}={str(self.path)!r}, released={self.released})"


class ResourceScope:
    """Owning lifetime boundary for one job's temporary resources.

    Every handle acquired through the scope is released when the scope
    exits, whatever the exit path. Handles may be released earlier; the
    scope skips those.

    Example:
        with ResourceScope() as scope:
            video = scope.acquire_file(suffix=".mp4")
            frames = scope.acquire_dir()
            ...
    """

    def __init__(
        self,
        root: Path | None = None,
        prefix: str = "video-segments-",
    ) -> None:
        """Initialize the scope.

        Args:
            root: Directory to create resources in; system temp dir if None.
            prefix: Name prefix of created resources.
        """
        self._root = root
        self._prefix = prefix
        self._handles: list[TempHandle] = []

    @property
    def handles(self) -> list[TempHandle]:
        return list(self._handles)

    def acquire_file(self, suffix: str = "") -> TempHandle:
        """Create a unique, empty, writable file."""
        fd, name = tempfile.mkstemp(suffix=suffix, prefix=self._prefix, dir=self._root)
        os.close(fd)
        handle = TempHandle(Path(name), is_dir=False)
        self._handles.append(handle)
        logger.debug("Temporary file created", extra={"path": name})
        return handle

    def acquire_dir(self) -> TempHandle:
        """Create a unique, empty, writable directory."""
        name = tempfile.mkdtemp(prefix=self._prefix, dir=self._root)
        handle = TempHandle(Path(name), is_dir=True)
        self._handles.append(handle)
        logger.debug("Temporary directory created", extra={"path": name})
        return handle

    def release_all(self) -> None:
        """Release every live handle, most recent first."""
        for handle in reversed(self._handles):
            handle.release()

    async def arelease_all(self) -> None:
        """Release every live handle off the event loop, most recent first."""
        for handle in reversed(self._handles):
            await handle.arelease()

    def __enter__(self) -> "ResourceScope":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release_all()

    async def __aenter__(self) -> "ResourceScope":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.arelease_all()
