"""Configuration constants.

Values fixed by the external annotation format and by the folder layout of
the tooling that ships the annotation files. These are NOT user-configurable.

For configurable values, see models.py.
"""

# =============================================================================
# Annotation XML format
# =============================================================================

NOT_NULL_CTOR = "M:JetBrains.Annotations.NotNullAttribute.#ctor"
"""Constructor id of the not-null attribute."""

CAN_BE_NULL_CTOR = "M:JetBrains.Annotations.CanBeNullAttribute.#ctor"
"""Constructor id of the can-be-null attribute."""

NULLABILITY_CTORS: frozenset[str] = frozenset({NOT_NULL_CTOR, CAN_BE_NULL_CTOR})

UNKNOWN_MEMBER_KIND = "?"
"""Kind tag for member names without a '<letter>:' prefix."""

# =============================================================================
# Side-by-side files
# =============================================================================

SIDE_BY_SIDE_SUFFIX = ".ExternalAnnotations.xml"
"""Appended to the assembly file name (without extension)."""

ANNOTATION_FILE_SUFFIX = ".xml"
"""Compared case-insensitively."""

# =============================================================================
# Installation folder layout
# =============================================================================

INSTALLATIONS_PARTS: tuple[str, ...] = ("JetBrains", "Installations")
EXTERNAL_ANNOTATIONS_FOLDER = "ExternalAnnotations"
EXTENSIONS_FOLDER = "Extensions"
NUGET_SUBFOLDER_PARTS: tuple[str, ...] = ("DotFiles", "ExternalAnnotations")

# =============================================================================
# On-disk cache
# =============================================================================

CACHE_DIR_NAME = "ResharperCodeContractNullability"
CACHE_FILE_NAME = "external-annotations.cache"

CACHE_MAGIC = b"XANC"
"""File signature of the msgpack cache format."""

CACHE_SCHEMA_VERSION = 1
"""Bump on any change to the packed tuple layout."""
