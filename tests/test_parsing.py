"""Tests for annotation document parsing."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path

import pytest

from extannotations.core.errors import AnnotationParseError, ErrorCode
from extannotations.parsing import AnnotationDocumentParser
from extannotations.storage.annotation_map import AnnotationMap


def _parse(text: str, result: AnnotationMap | None = None) -> AnnotationMap:
    result = AnnotationMap() if result is None else result
    AnnotationDocumentParser().process_document(io.BytesIO(text.encode("utf-8")), result)
    return result


class TestScenario:
    """A method with an annotated return value and one annotated parameter."""

    def test_member_and_parameters(self, annotation_xml: type) -> None:
        # Given / When
        annotations = _parse(annotation_xml.scenario)

        # Then
        assert annotations.contains("N.C.Foo", "M") is True
        assert annotations.contains("N.C.Foo", "M", is_parameter=True, parameter_name="x") is True
        assert annotations.contains("N.C.Foo", "M", is_parameter=True, parameter_name="y") is False

    def test_applies_to_item_not_found(self, annotation_xml: type) -> None:
        annotations = _parse(annotation_xml.scenario)
        assert annotations.contains("N.C.Foo", "M", applies_to_item=True) is False

    def test_parsing_twice_is_idempotent(self, annotation_xml: type) -> None:
        once = _parse(annotation_xml.scenario)
        twice = _parse(annotation_xml.scenario, _parse(annotation_xml.scenario))

        assert twice == once


class TestMerging:
    """Documents are merged into an existing map."""

    def test_member_spread_over_documents(self, annotation_xml: type) -> None:
        xml = annotation_xml
        annotations = _parse(xml.document(xml.member("M:N.C.Foo", parameters=("a",))))
        _parse(
            xml.document(xml.member("M:N.C.Foo", nullable=True, parameters=("b",))), annotations
        )

        info = annotations["N.C.Foo"]
        assert info.has_nullability_defined is True
        assert info.parameter_nullability == {"a": True, "b": True}

    def test_first_kind_is_kept(self, annotation_xml: type) -> None:
        xml = annotation_xml
        annotations = _parse(xml.document(xml.member("T:N.Shared", nullable=True)))
        _parse(xml.document(xml.member("M:N.Shared", nullable=True)), annotations)

        assert annotations["N.Shared"].kind == "T"
        assert annotations.contains("N.Shared", "M") is False


class TestAttributeFiltering:
    """Only the two nullability constructors count."""

    def test_unrelated_attribute_is_ignored(self) -> None:
        annotations = _parse(
            """<assembly name="A">
              <member name="M:N.C.Format(System.String)">
                <attribute ctor="M:JetBrains.Annotations.StringFormatMethodAttribute.#ctor">
                  <argument>format</argument>
                </attribute>
                <parameter name="format">
                  <attribute ctor="M:JetBrains.Annotations.PureAttribute.#ctor" />
                </parameter>
              </member>
            </assembly>"""
        )

        info = annotations["N.C.Format(System.String)"]
        assert info.is_empty
        assert annotations.compact() == 1

    @pytest.mark.parametrize(
        "ctor",
        [
            "M:JetBrains.Annotations.NotNullAttribute.#ctor",
            "M:JetBrains.Annotations.CanBeNullAttribute.#ctor",
        ],
    )
    def test_both_nullability_attributes_count(self, ctor: str) -> None:
        annotations = _parse(
            f'<assembly name="A"><member name="P:N.C.Value">'
            f'<attribute ctor="{ctor}" /></member></assembly>'
        )
        assert annotations.contains("N.C.Value", "P") is True


class TestMemberNames:
    def test_name_without_prefix_gets_unknown_kind(self, annotation_xml: type) -> None:
        xml = annotation_xml
        annotations = _parse(xml.document(xml.member("N.C.Odd", nullable=True)))
        assert annotations["N.C.Odd"].kind == "?"

    def test_key_keeps_parameter_signature(self, annotation_xml: type) -> None:
        annotations = _parse(
            annotation_xml.document(
                annotation_xml.member("M:N.C.Foo(System.String,System.Int32)", nullable=True)
            )
        )
        assert "N.C.Foo(System.String,System.Int32)" in annotations


class TestDocumentShape:
    def test_non_assembly_root_is_ignored(self) -> None:
        annotations = _parse('<root><member name="M:N.C.Foo" /></root>')
        assert annotations == {}

    def test_empty_assembly(self) -> None:
        assert _parse('<assembly name="A" />') == {}


class TestErrors:
    """Malformed documents are reported with typed errors."""

    def test_malformed_xml(self) -> None:
        with pytest.raises(AnnotationParseError) as exc_info:
            _parse("<assembly><member name='M:N.C.Foo'></assembly>")
        assert exc_info.value.code == ErrorCode.ANNOTATION_PARSE_ERROR

    def test_member_without_name(self) -> None:
        with pytest.raises(AnnotationParseError, match="name"):
            _parse('<assembly name="A"><member /></assembly>')

    def test_attribute_without_ctor(self) -> None:
        with pytest.raises(AnnotationParseError, match="ctor"):
            _parse('<assembly name="A"><member name="M:N.C.Foo"><attribute /></member></assembly>')

    def test_parameter_without_name(self) -> None:
        with pytest.raises(AnnotationParseError):
            _parse(
                '<assembly name="A"><member name="M:N.C.Foo">'
                "<parameter><attribute ctor=\"x\" /></parameter></member></assembly>"
            )


class TestParseFile:
    def test_reads_from_disk(
        self, tmp_path: Path, write_xml: Callable[[Path, str], Path], annotation_xml: type
    ) -> None:
        path = write_xml(tmp_path / "N.xml", annotation_xml.scenario)
        annotations = AnnotationMap()

        AnnotationDocumentParser().parse_file(path, annotations)

        assert annotations.contains("N.C.Foo", "M") is True

    def test_error_names_the_file(
        self, tmp_path: Path, write_xml: Callable[[Path, str], Path]
    ) -> None:
        path = write_xml(tmp_path / "broken.xml", "<assembly>")

        with pytest.raises(AnnotationParseError) as exc_info:
            AnnotationDocumentParser().parse_file(path, AnnotationMap())

        assert exc_info.value.details["source"] == str(path)

    def test_missing_file_raises_os_error(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            AnnotationDocumentParser().parse_file(tmp_path / "absent.xml", AnnotationMap())
