"""Error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Annotations (discovery, parsing, cache)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2003

    # Annotations (3xxx)
    ANNOTATIONS_NOT_FOUND = 3001
    ANNOTATIONS_LOAD_FAILED = 3002
    ANNOTATIONS_EMPTY = 3003
    ANNOTATION_PARSE_ERROR = 3004
    CACHE_CORRUPT = 3101
    CACHE_SCHEMA_MISMATCH = 3102

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class AnnotationsError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ANNOTATIONS_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AnnotationsError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


def _quote_folders(folders: list[str]) -> str:
    return ";".join(f'"{folder}"' for folder in folders)


class MissingExternalAnnotationsError(AnnotationsError):
    """The process-wide annotation set could not be produced.

    Fatal: a consuming analyzer must not continue with an empty baseline.
    """

    @classmethod
    def no_source_data(cls, folders: list[str]) -> "MissingExternalAnnotationsError":
        return cls(
            code=ErrorCode.ANNOTATIONS_NOT_FOUND,
            message=(
                "No external annotation files were found. Scanned folders: "
                f"{_quote_folders(folders)}"
            ),
            details={"folders": folders},
        )

    @classmethod
    def load_failed(cls, folders: list[str], reason: str) -> "MissingExternalAnnotationsError":
        return cls(
            code=ErrorCode.ANNOTATIONS_LOAD_FAILED,
            message=(
                f"Failed to load external annotations: {reason}. Scanned folders: "
                f"{_quote_folders(folders)}"
            ),
            details={"folders": folders, "reason": reason},
        )

    @classmethod
    def empty_result(cls, folders: list[str]) -> "MissingExternalAnnotationsError":
        return cls(
            code=ErrorCode.ANNOTATIONS_EMPTY,
            message=(
                "External annotation files contained no nullability annotations. "
                f"Scanned folders: {_quote_folders(folders)}"
            ),
            details={"folders": folders},
        )


class AnnotationParseError(AnnotationsError):
    """An annotation XML document could not be read."""

    @classmethod
    def invalid_xml(cls, source: str, reason: str) -> "AnnotationParseError":
        return cls(
            code=ErrorCode.ANNOTATION_PARSE_ERROR,
            message=f"Invalid annotation XML in {source}: {reason}",
            details={"source": source, "reason": reason},
        )

    @classmethod
    def missing_attribute(cls, source: str, element: str, attribute: str) -> "AnnotationParseError":
        return cls(
            code=ErrorCode.ANNOTATION_PARSE_ERROR,
            message=f"<{element}> without '{attribute}' attribute in {source}",
            details={"source": source, "element": element, "attribute": attribute},
        )


class CacheCorruptError(AnnotationsError):
    """Persisted cache file is unreadable or inconsistent."""

    @classmethod
    def corrupt(cls, path: str, reason: str) -> "CacheCorruptError":
        return cls(
            code=ErrorCode.CACHE_CORRUPT,
            message=f"Annotation cache at {path} is corrupt: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )


class CacheSchemaMismatchError(AnnotationsError):
    """Persisted cache file was written with another schema version."""

    @classmethod
    def mismatch(cls, path: str, found: int, expected: int) -> "CacheSchemaMismatchError":
        return cls(
            code=ErrorCode.CACHE_SCHEMA_MISMATCH,
            message=f"Annotation cache at {path} has schema {found}, expected {expected}",
            retryable=True,
            details={"path": path, "found": found, "expected": expected},
        )


class InternalError(AnnotationsError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
