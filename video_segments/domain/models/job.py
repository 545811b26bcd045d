"""Job domain model decoded from queue messages."""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from video_segments.domain.exceptions import InvalidJobError

SUPPORTED_SCHEMES = ("http", "https")


class Job(BaseModel):
    """A request to segment a single source video.

    Decoded from a queue message body of the form
    ``{"id": "<video id>", "uri": "<source uri>"}``. Immutable for the
    lifetime of the job.

    Examples:
        >>> job = Job.from_message('{"id": "v1", "uri": "https://host/movie.mp4"}')
        >>> job.source_stem
        'movie'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, description="Correlation id of the source video")
    source_uri: str = Field(
        alias="uri",
        min_length=1,
        description="Remote location of the source video",
    )

    @field_validator("source_uri")
    @classmethod
    def validate_source_uri(cls, v: str) -> str:
        """Require an http(s) URI whose path names a file."""
        parts = urlsplit(v)
        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            msg = f"Unsupported URI scheme: '{parts.scheme}'"
            raise ValueError(msg)
        if not PurePosixPath(unquote(parts.path)).name:
            msg = f"URI does not name a file: '{v}'"
            raise ValueError(msg)
        return v

    @classmethod
    def from_message(cls, body: str | bytes) -> Job:
        """Decode a job from a raw message body.

        Raises:
            InvalidJobError: If the body is not JSON or lacks required fields.
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise InvalidJobError(str(e)) from e

    @property
    def source_name(self) -> str:
        """File name of the source, without query string."""
        return PurePosixPath(unquote(urlsplit(self.source_uri).path)).name

    @property
    def source_stem(self) -> str:
        """Source file name without extension; the object-store sub-directory."""
        return PurePosixPath(self.source_name).stem
