"""Discovery of installed external annotation folders.

Layout searched (``<root>`` is the system-wide or the per-user root)::

    <root>/JetBrains/Installations/ReSharperPlatformVs15/ExternalAnnotations
    <root>/JetBrains/Installations/ReSharperPlatformVs15/Extensions
    <nuget_root>/2023.3.0/DotFiles/ExternalAnnotations

Missing roots or subfolders simply contribute nothing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

import structlog

from extannotations.config.constants import (
    ANNOTATION_FILE_SUFFIX,
    EXTENSIONS_FOLDER,
    EXTERNAL_ANNOTATIONS_FOLDER,
    INSTALLATIONS_PARTS,
    NUGET_SUBFOLDER_PARTS,
)
from extannotations.config.models import LocationsConfig, ScannerConfig

log = structlog.get_logger(__name__)


class Category(IntEnum):
    """Annotation set category. Declaration order is sort order."""

    EXTERNAL_ANNOTATIONS = 0
    EXTENSIONS = 1


class Scope(IntEnum):
    """Installation scope. Declaration order is sort order."""

    SYSTEM = 0
    USER = 1
    NUGET = 2


_CATEGORY_FOLDERS: dict[Category, str] = {
    Category.EXTERNAL_ANNOTATIONS: EXTERNAL_ANNOTATIONS_FOLDER,
    Category.EXTENSIONS: EXTENSIONS_FOLDER,
}


@dataclass(frozen=True)
class AnnotationsLocation:
    scope: Scope
    category: Category
    version: tuple[int, ...]
    path: Path

    @property
    def sort_key(self) -> tuple[Category, Scope, tuple[int, ...]]:
        return (self.category, self.scope, self.version)


def parse_package_version(name: str) -> tuple[int, ...] | None:
    """Parse a dotted version folder name with 2-4 numeric components."""
    parts = name.split(".")
    if not 2 <= len(parts) <= 4 or not all(part.isdecimal() for part in parts):
        return None
    return tuple(int(part) for part in parts)


class FolderOnDiskScanner:
    """Enumerates annotation folders, ordered by category, then scope, then version."""

    def __init__(
        self,
        locations: LocationsConfig | None = None,
        scanner: ScannerConfig | None = None,
    ) -> None:
        self._locations = locations or LocationsConfig()
        self._scanner = scanner or ScannerConfig()

    def get_folders_to_scan(self) -> list[Path]:
        found = sorted(self.enumerate_locations(), key=lambda loc: loc.sort_key)
        return [location.path for location in found]

    def get_folders_to_probe(self) -> list[str]:
        """Wildcard patterns of every place looked at, for error reporting."""
        platform_glob = self._scanner.platform_folder_prefix + "??"
        system_root = Path(self._locations.system_root)
        user_root = Path(self._locations.user_root)
        probes = [
            system_root.joinpath(*INSTALLATIONS_PARTS, platform_glob, EXTERNAL_ANNOTATIONS_FOLDER),
            system_root.joinpath(*INSTALLATIONS_PARTS, platform_glob, EXTENSIONS_FOLDER),
        ]
        if self._scanner.include_nuget:
            probes.append(Path(self._locations.nuget_root).joinpath("*", *NUGET_SUBFOLDER_PARTS))
        probes += [
            user_root.joinpath(*INSTALLATIONS_PARTS, platform_glob, EXTERNAL_ANNOTATIONS_FOLDER),
            user_root.joinpath(*INSTALLATIONS_PARTS, platform_glob, EXTENSIONS_FOLDER),
        ]
        return [str(probe) for probe in probes]

    def enumerate_locations(self) -> list[AnnotationsLocation]:
        locations: list[AnnotationsLocation] = []
        for scope in Scope:
            if scope == Scope.NUGET:
                if self._scanner.include_nuget:
                    locations.extend(self._enumerate_nuget_subfolders())
                continue
            for category in Category:
                locations.extend(self._enumerate_platform_subfolders(scope, category))
        return locations

    def _enumerate_platform_subfolders(
        self, scope: Scope, category: Category
    ) -> list[AnnotationsLocation]:
        root = self._locations.system_root if scope == Scope.SYSTEM else self._locations.user_root
        installations = Path(root).joinpath(*INSTALLATIONS_PARTS)
        prefix = self._scanner.platform_folder_prefix

        found: list[AnnotationsLocation] = []
        for platform_dir in _subdirectories(installations):
            name = platform_dir.name
            if not name.startswith(prefix):
                continue
            digits = name[len(prefix) : len(prefix) + 2]
            if len(digits) != 2 or not digits.isdecimal():
                continue
            version = int(digits)
            if version < self._scanner.min_platform_version:
                continue
            path = platform_dir / _CATEGORY_FOLDERS[category]
            if path.is_dir():
                found.append(AnnotationsLocation(scope, category, (version, 0), path))
        return found

    def _enumerate_nuget_subfolders(self) -> list[AnnotationsLocation]:
        found: list[AnnotationsLocation] = []
        for version_dir in _subdirectories(Path(self._locations.nuget_root)):
            version = parse_package_version(version_dir.name)
            if version is None:
                continue
            path = version_dir.joinpath(*NUGET_SUBFOLDER_PARTS)
            if path.is_dir():
                found.append(
                    AnnotationsLocation(Scope.NUGET, Category.EXTERNAL_ANNOTATIONS, version, path)
                )
        return found


def _subdirectories(folder: Path) -> list[Path]:
    try:
        return sorted(entry for entry in folder.iterdir() if entry.is_dir())
    except OSError:
        # Missing or unreadable root: nothing installed there
        return []


def path_identity(path: Path | str) -> str:
    """Comparison key for paths: absolute, and case-folded where the host ignores case."""
    return os.path.normcase(os.path.abspath(path))


def enumerate_annotation_files(folders: list[Path]) -> list[Path]:
    """All XML files below ``folders``, recursively, each path once."""
    files: dict[str, Path] = {}
    for folder in folders:
        if not folder.is_dir():
            continue
        for path in sorted(folder.rglob("*")):
            if path.suffix.lower() == ANNOTATION_FILE_SUFFIX and path.is_file():
                files.setdefault(path_identity(path), path)
    log.debug("annotation_files_enumerated", folders=len(folders), files=len(files))
    return list(files.values())
