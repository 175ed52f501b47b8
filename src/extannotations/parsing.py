"""External annotation XML document parser.

Structure:
<assembly name="mscorlib">
  <member name="M:System.String.Format(System.String,System.Object)">
    <attribute ctor="M:JetBrains.Annotations.NotNullAttribute.#ctor" />
    <parameter name="format">
      <attribute ctor="M:JetBrains.Annotations.NotNullAttribute.#ctor" />
    </parameter>
  </member>
</assembly>

Only the not-null and can-be-null constructors are of interest; every other
attribute (string format, pure, contract annotation, ...) is ignored.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO

from extannotations.config.constants import NULLABILITY_CTORS
from extannotations.core.errors import AnnotationParseError
from extannotations.storage.annotation_map import AnnotationMap
from extannotations.symbols import split_member_name


class AnnotationDocumentParser:
    """Merges the members of annotation documents into an AnnotationMap."""

    def parse_file(self, path: Path, result: AnnotationMap) -> None:
        """Parse one annotation file into ``result``."""
        with path.open("rb") as f:
            self.process_document(f, result, source=str(path))

    def process_document(
        self,
        document: IO[bytes] | IO[str],
        result: AnnotationMap,
        *,
        source: str = "<stream>",
    ) -> None:
        """Parse one document and merge its members into ``result``.

        Entries already in ``result`` are extended, never replaced, so the same
        member may be spread over several documents.

        Raises:
            AnnotationParseError: If the XML is malformed or required attributes are missing.
        """
        try:
            root = ET.parse(document).getroot()
        except ET.ParseError as e:
            raise AnnotationParseError.invalid_xml(source, str(e)) from e

        if root.tag != "assembly":
            return

        for member in root.findall("member"):
            member_name = _required(member, "name", source)
            kind, key = split_member_name(member_name)
            info = result.get_or_add(key, kind)

            for child in member:
                if child.tag == "attribute":
                    if _is_nullability_attribute(child, source):
                        info.has_nullability_defined = True
                elif child.tag == "parameter":
                    parameter_name = _required(child, "name", source)
                    for attribute in child.findall("attribute"):
                        if _is_nullability_attribute(attribute, source):
                            info.parameter_nullability[parameter_name] = True


def _required(element: ET.Element, attribute: str, source: str) -> str:
    value = element.get(attribute)
    if value is None:
        raise AnnotationParseError.missing_attribute(source, element.tag, attribute)
    return value


def _is_nullability_attribute(element: ET.Element, source: str) -> bool:
    return _required(element, "ctor", source) in NULLABILITY_CTORS
