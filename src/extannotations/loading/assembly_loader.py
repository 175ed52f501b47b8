"""Side-by-side annotation files shipped next to referenced assemblies.

For ``lib/Foo.Bar.dll`` the file is ``lib/Foo.Bar.ExternalAnnotations.xml``.
"""

from __future__ import annotations

from pathlib import Path

from extannotations.config.constants import SIDE_BY_SIDE_SUFFIX
from extannotations.parsing import AnnotationDocumentParser
from extannotations.storage.annotation_map import AnnotationMap
from extannotations.symbols import Compilation, Symbol


class AssemblyExternalAnnotationsLoader:
    def __init__(self, parser: AnnotationDocumentParser | None = None) -> None:
        self._parser = parser or AnnotationDocumentParser()

    def get_path_for_external_symbol_or_none(
        self, symbol: Symbol, compilation: Compilation
    ) -> Path | None:
        """Locate the side-by-side file for the assembly declaring ``symbol``.

        Returns None for source assemblies, in-memory references, and when no
        such file exists.
        """
        assembly = symbol.containing_assembly
        if assembly is None:
            return None

        reference = compilation.get_metadata_reference(assembly)
        assembly_path = reference.file_path if reference is not None else None
        if not assembly_path:
            return None

        binary = Path(assembly_path)
        candidate = binary.with_name(binary.stem + SIDE_BY_SIDE_SUFFIX)
        return candidate if candidate.is_file() else None

    def parse_file(self, path: Path) -> AnnotationMap:
        annotations = AnnotationMap()
        self._parser.parse_file(path, annotations)
        return annotations
