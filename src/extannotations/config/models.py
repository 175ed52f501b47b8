"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (EXTANNOTATIONS__SECTION__KEY)
3. Explicit YAML passed to load_config(), then the global YAML
   (~/.config/extannotations/config.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    EXTANNOTATIONS__<SECTION>__<KEY>=<VALUE>

Examples:
    EXTANNOTATIONS__LOGGING__LEVEL=DEBUG
    EXTANNOTATIONS__LOCATIONS__CACHE_PATH=/tmp/annotations.cache
    EXTANNOTATIONS__SCANNER__MIN_PLATFORM_VERSION=15
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from extannotations.config.constants import CACHE_DIR_NAME, CACHE_FILE_NAME

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def default_system_root() -> str:
    """System-wide installation root (32-bit program files on Windows)."""
    return os.environ.get("ProgramFiles(x86)") or os.environ.get("ProgramFiles") or "/opt"


def default_user_root() -> str:
    """Per-user application data root."""
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        return local_app_data
    return os.environ.get("XDG_DATA_HOME") or str(Path("~/.local/share").expanduser())


def default_nuget_root() -> str:
    return str(Path("~/.nuget/packages/jetbrains.externalannotations").expanduser())


def default_cache_path() -> str:
    return str(Path(default_user_root()) / CACHE_DIR_NAME / CACHE_FILE_NAME)


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        EXTANNOTATIONS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG adds per-phase timings.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class LocationsConfig(BaseModel):
    """Where annotation files are searched and where the cache is stored.

    Env vars:
        EXTANNOTATIONS__LOCATIONS__SYSTEM_ROOT: System-wide installation root
        EXTANNOTATIONS__LOCATIONS__USER_ROOT: Per-user installation root
        EXTANNOTATIONS__LOCATIONS__NUGET_ROOT: Annotation package folder
        EXTANNOTATIONS__LOCATIONS__CACHE_PATH: Persisted cache file
    """

    system_root: str = Field(
        default_factory=default_system_root,
        description="Parent of JetBrains/Installations for machine-wide installs.",
    )
    user_root: str = Field(
        default_factory=default_user_root,
        description="Parent of JetBrains/Installations for per-user installs.",
    )
    nuget_root: str = Field(
        default_factory=default_nuget_root,
        description="Folder holding one subfolder per annotation package version.",
    )
    cache_path: str = Field(
        default_factory=default_cache_path,
        description="Persisted compacted annotation map. Rebuilt when stale.",
    )

    @field_validator("system_root", "user_root", "nuget_root", "cache_path")
    @classmethod
    def expand_user(cls, v: str) -> str:
        if not v:
            raise ValueError("Path must not be empty")
        return str(Path(v).expanduser())


class ScannerConfig(BaseModel):
    """Folder scanner configuration.

    Env vars:
        EXTANNOTATIONS__SCANNER__MIN_PLATFORM_VERSION: Oldest platform folder to include
        EXTANNOTATIONS__SCANNER__INCLUDE_NUGET: Scan the annotation package folder
    """

    platform_folder_prefix: str = Field(
        default="ReSharperPlatformVs",
        description="Installation folder prefix, followed by a two-digit version.",
    )
    min_platform_version: int = Field(
        default=14,
        description="Platform folders with a lower two-digit version are skipped.",
    )
    include_nuget: bool = Field(
        default=True,
        description="Also scan <nuget_root>/<version>/DotFiles/ExternalAnnotations.",
    )

    @field_validator("min_platform_version")
    @classmethod
    def validate_min_platform_version(cls, v: int) -> int:
        if not (0 <= v <= 99):
            raise ValueError(f"Platform version must be two digits, got {v}")
        return v


class WatcherConfig(BaseModel):
    """Side-by-side file watch configuration.

    Env vars:
        EXTANNOTATIONS__WATCHER__FORCE_POLLING: Poll instead of native notifications
        EXTANNOTATIONS__WATCHER__POLL_DELAY_MS: Poll interval when polling
    """

    force_polling: bool = Field(
        default=False,
        description="Use mtime polling. Needed on network and cross-filesystem mounts.",
    )
    poll_delay_ms: int = Field(
        default=300,
        description="Polling interval in milliseconds (only with force_polling).",
    )
    debounce_ms: int = Field(
        default=50,
        description="Notifications within this window are delivered as one batch.",
    )

    @field_validator("poll_delay_ms", "debounce_ms")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v


class AnnotationsConfig(BaseModel):
    """Root configuration.

    All settings can be configured via:
    1. Environment variables: EXTANNOTATIONS__SECTION__KEY
    2. Global YAML config file
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    locations: LocationsConfig = Field(default_factory=LocationsConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
