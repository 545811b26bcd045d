"""Settings loader layering JSON config files under the environment."""

import json
import os
from pathlib import Path
from typing import Any

from video_segments.commons.settings.models import Settings

# Bucket variable read by earlier deployments of the worker
LEGACY_BUCKET_VAR = "S3_BUCKET"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class SettingsLoader:
    """Builds :class:`Settings` from config files and the environment.

    Precedence (highest to lowest):
    1. ``VIDEO_SEGMENTS__*`` environment variables, e.g.
       ``VIDEO_SEGMENTS__STORAGE__BUCKET`` (applied by ``Settings`` itself)
    2. ``S3_BUCKET``, for the destination bucket only
    3. Environment-specific config (``appsettings.{env}.json``)
    4. Base config (``appsettings.json``)
    """

    ENV_PREFIX = "VIDEO_SEGMENTS__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to 'config' in current working directory.
            environment: Environment name (dev, staging, prod).
                        Defaults to VIDEO_SEGMENTS__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    @property
    def config_files(self) -> list[Path]:
        """Config files in merge order; missing files are skipped."""
        return [
            self.config_dir / "appsettings.json",
            self.config_dir / f"appsettings.{self.environment}.json",
        ]

    def load(self) -> Settings:
        """Load settings with proper precedence."""
        config: dict[str, Any] = {}
        for path in self.config_files:
            config = deep_merge(config, self._read_json(path))

        legacy_bucket = os.getenv(LEGACY_BUCKET_VAR)
        if legacy_bucket:
            config = deep_merge(config, {"storage": {"bucket": legacy_bucket}})

        return Settings(**config)

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))


# Global settings instance
_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the global settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _settings = loader.load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
