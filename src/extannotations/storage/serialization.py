"""Binary on-disk format for AnnotationsCache.

Format:
- Header (18 bytes): magic + schema version + payload length + checksum
- Payload (msgpack): tuple schema

    (last_write_time_ns, [(key, (kind, has_nullability_defined, {param: bool})), ...])

Only self-consistency is guaranteed: a file is readable by the same schema
version that wrote it. Anything else is reported as corrupt or mismatched
and the caller rebuilds.
"""

from __future__ import annotations

import hashlib
import os
import struct
import tempfile
from pathlib import Path
from typing import Any

import msgpack

from extannotations.config.constants import CACHE_MAGIC, CACHE_SCHEMA_VERSION
from extannotations.core.errors import CacheCorruptError, CacheSchemaMismatchError
from extannotations.storage.annotation_map import AnnotationMap
from extannotations.storage.cache import AnnotationsCache
from extannotations.storage.member_info import MemberNullabilityInfo

HEADER_FORMAT = "<4sHI8s"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)


def _checksum(payload: bytes) -> bytes:
    return hashlib.blake2b(payload, digest_size=8).digest()


def pack_cache(cache: AnnotationsCache) -> bytes:
    """Pack a cache into header + msgpack payload."""
    entries = [
        (key, (info.kind, info.has_nullability_defined, info.parameter_nullability))
        for key, info in cache.annotations.items()
    ]
    payload = msgpack.packb((cache.last_write_time_ns, entries), use_bin_type=True)
    header = struct.pack(
        HEADER_FORMAT, CACHE_MAGIC, CACHE_SCHEMA_VERSION, len(payload), _checksum(payload)
    )
    return header + payload


def unpack_cache(data: bytes, *, source: str = "<memory>") -> AnnotationsCache:
    """Unpack bytes produced by pack_cache.

    Raises:
        CacheCorruptError: If header, checksum or payload structure is invalid
        CacheSchemaMismatchError: If the schema version differs
    """
    if len(data) < HEADER_SIZE:
        raise CacheCorruptError.corrupt(source, f"data too short: {len(data)} bytes")

    magic, schema, payload_len, stored_checksum = struct.unpack(
        HEADER_FORMAT, data[:HEADER_SIZE]
    )
    if magic != CACHE_MAGIC:
        raise CacheCorruptError.corrupt(source, f"invalid magic bytes {magic!r}")
    if schema != CACHE_SCHEMA_VERSION:
        raise CacheSchemaMismatchError.mismatch(source, schema, CACHE_SCHEMA_VERSION)

    payload = data[HEADER_SIZE : HEADER_SIZE + payload_len]
    if len(payload) < payload_len:
        raise CacheCorruptError.corrupt(
            source, f"payload truncated: {len(payload)} < {payload_len}"
        )
    if _checksum(payload) != stored_checksum:
        raise CacheCorruptError.corrupt(source, "checksum mismatch")

    try:
        unpacked = msgpack.unpackb(payload, raw=False, use_list=True, strict_map_key=False)
    except (ValueError, msgpack.UnpackException) as e:
        raise CacheCorruptError.corrupt(source, f"invalid msgpack payload: {e}") from e

    try:
        last_write_time_ns, entries = unpacked
        annotations = AnnotationMap()
        for key, (kind, has_defined, parameters) in entries:
            if not isinstance(key, str):
                raise ValueError(f"member key is not a string: {key!r}")
            annotations[key] = _unpack_member(kind, has_defined, parameters)
    except (TypeError, ValueError) as e:
        raise CacheCorruptError.corrupt(source, f"invalid payload structure: {e}") from e

    if not isinstance(last_write_time_ns, int):
        raise CacheCorruptError.corrupt(source, "timestamp is not an integer")
    return AnnotationsCache(last_write_time_ns=last_write_time_ns, annotations=annotations)


def _unpack_member(kind: Any, has_defined: Any, parameters: Any) -> MemberNullabilityInfo:
    if not isinstance(kind, str) or not isinstance(parameters, dict):
        raise ValueError(f"unexpected member layout: {kind!r}, {type(parameters).__name__}")
    return MemberNullabilityInfo(
        kind=kind,
        has_nullability_defined=bool(has_defined),
        parameter_nullability={str(name): bool(flag) for name, flag in parameters.items()},
    )


def read_cache_file(path: Path) -> AnnotationsCache:
    """Read and unpack a cache file. OSError propagates for missing/unreadable files."""
    return unpack_cache(path.read_bytes(), source=str(path))


def write_cache_file(path: Path, cache: AnnotationsCache) -> None:
    """Write a cache file atomically (temp file in the same folder + rename).

    Creates the containing directory when absent.
    """
    data = pack_cache(cache)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
