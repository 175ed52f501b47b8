"""Annotation loaders: installed folders (global) and side-by-side files."""

from extannotations.loading.assembly_loader import AssemblyExternalAnnotationsLoader
from extannotations.loading.folder_loader import FolderExternalAnnotationsLoader

__all__ = [
    "AssemblyExternalAnnotationsLoader",
    "FolderExternalAnnotationsLoader",
]
