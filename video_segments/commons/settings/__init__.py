"""Settings management module."""

from video_segments.commons.settings.loader import (
    SettingsLoader,
    get_settings,
    reset_settings,
)
from video_segments.commons.settings.models import (
    AppSettings,
    HttpSettings,
    ProcessingSettings,
    QueueSettings,
    Settings,
    StorageSettings,
    TelemetrySettings,
    WorkerSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    # Transports
    "QueueSettings",
    "StorageSettings",
    "HttpSettings",
    # Processing
    "ProcessingSettings",
    "WorkerSettings",
    # Telemetry
    "TelemetrySettings",
]
