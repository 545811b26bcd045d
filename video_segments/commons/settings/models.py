"""Pydantic settings models for worker configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "video-segments-worker"
    environment: Literal["dev", "staging", "prod"] = "dev"


class QueueSettings(BaseModel):
    """Queue transport settings (Redis)."""

    provider: Literal["redis", "memory"] = "redis"
    url: str = "redis://localhost:6379/0"
    video_topic: str = "video-creates"
    segment_topic: str = "video-segment-creates"
    block_timeout_seconds: float = Field(default=5.0, gt=0)
    # Processing-list owner; set a stable name per instance to recover its
    # in-flight messages after a restart. Defaults to "<hostname>:<pid>".
    consumer_name: str | None = None


class StorageSettings(BaseModel):
    """Object storage settings (MinIO/S3)."""

    endpoint: str = "s3.amazonaws.com"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = True
    region: str | None = None
    bucket: str = ""
    acl: str | None = "public-read"
    public_url_template: str = "https://{bucket}.s3.amazonaws.com/{key}"


class HttpSettings(BaseModel):
    """Source download settings."""

    timeout_seconds: float = Field(default=60.0, gt=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    chunk_size: int = Field(default=64 * 1024, ge=1024)
    follow_redirects: bool = True


class ProcessingSettings(BaseModel):
    """Segmentation pipeline settings."""

    batch_size: int = Field(default=10, ge=1, le=256)
    frame_format: str = "jpg"
    temp_dir: str | None = None
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"


class WorkerSettings(BaseModel):
    """Queue consumer behaviour."""

    # "leave_pending" hands fatally failed messages back to the transport like
    # transient failures; "ack" drops them.
    fatal_error_policy: Literal["ack", "leave_pending"] = "leave_pending"


class TelemetrySettings(BaseModel):
    """Logging settings."""

    log_format: Literal["json", "text"] = "json"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class Settings(BaseSettings):
    """Root settings container.

    Values passed to the constructor (the merged config files) are
    overridden by ``VIDEO_SEGMENTS__*`` environment variables.
    """

    app: AppSettings = Field(default_factory=AppSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_SEGMENTS__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings
