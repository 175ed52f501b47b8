"""Annotation storage: in-memory map, persisted cache unit, binary codec."""

from extannotations.storage.annotation_map import AnnotationMap
from extannotations.storage.cache import AnnotationsCache
from extannotations.storage.member_info import MemberNullabilityInfo
from extannotations.storage.serialization import (
    pack_cache,
    read_cache_file,
    unpack_cache,
    write_cache_file,
)

__all__ = [
    "AnnotationMap",
    "AnnotationsCache",
    "MemberNullabilityInfo",
    "pack_cache",
    "read_cache_file",
    "unpack_cache",
    "write_cache_file",
]
