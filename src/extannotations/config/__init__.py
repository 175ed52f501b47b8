"""Config module exports."""

from extannotations.config.loader import load_config
from extannotations.config.models import (
    AnnotationsConfig,
    LocationsConfig,
    LoggingConfig,
    ScannerConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "AnnotationsConfig",
    "LocationsConfig",
    "LoggingConfig",
    "ScannerConfig",
    "WatcherConfig",
]
