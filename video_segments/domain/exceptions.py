"""Classified pipeline errors for the video segments worker.

Every error raised inside the pipeline carries a ``fatal`` flag. A fatal
error means redelivering the same job cannot succeed; a transient one may
succeed on a later attempt.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for classified pipeline errors."""

    fatal: bool = False

    def __init__(
        self,
        message: str,
        *,
        stage: str = "pipeline",
        fatal: bool | None = None,
    ) -> None:
        self.stage = stage
        if fatal is not None:
            self.fatal = fatal
        super().__init__(message)


class FatalError(PipelineError):
    """A failure for which retrying the same job cannot succeed."""

    fatal = True


class TransientError(PipelineError):
    """A failure that may succeed on redelivery."""

    fatal = False


class InvalidJobError(FatalError):
    """Raised when a queue message body is not a valid job."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid job message: {reason}", stage="decode")


class FetchError(FatalError):
    """Raised when the source responds with a non-success status."""

    def __init__(self, uri: str, status_code: int) -> None:
        self.uri = uri
        self.status_code = status_code
        super().__init__(
            f"Invalid status code: {status_code} while downloading {uri}",
            stage="fetch",
        )


class FetchConnectionError(TransientError):
    """Raised when the source could not be reached."""

    def __init__(self, uri: str, reason: str) -> None:
        self.uri = uri
        self.reason = reason
        super().__init__(f"Downloading {uri} failed: {reason}", stage="fetch")


class ProbeError(FatalError):
    """Raised when video metadata cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Probing {path} failed: {reason}", stage="probe")


class ExtractionError(FatalError):
    """Raised when frames cannot be extracted from a video."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Extracting frames from {path} failed: {reason}",
            stage="extract",
        )


class FrameNamingError(FatalError):
    """Raised when an output file violates the ``<stem>_<index>`` naming contract."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(
            f"Frame file name does not carry an index: {file_name}",
            stage="extract",
        )


class UploadError(TransientError):
    """Raised when the object store rejects or fails an upload."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Uploading {key} failed: {reason}", stage="upload")
