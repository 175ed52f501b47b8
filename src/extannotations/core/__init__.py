"""Core module exports."""

from extannotations.core.errors import (
    AnnotationParseError,
    AnnotationsError,
    CacheCorruptError,
    CacheSchemaMismatchError,
    ConfigError,
    ErrorCode,
    InternalError,
    MissingExternalAnnotationsError,
)
from extannotations.core.logging import configure_logging, get_log_file_path, get_logger
from extannotations.core.timing import timed

__all__ = [
    # Errors
    "AnnotationParseError",
    "AnnotationsError",
    "CacheCorruptError",
    "CacheSchemaMismatchError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "MissingExternalAnnotationsError",
    # Logging
    "configure_logging",
    "get_log_file_path",
    "get_logger",
    "timed",
]
