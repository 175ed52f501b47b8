"""Symbol and compilation contracts consumed by the resolvers.

The host analyzer owns the real symbol model. Anything that satisfies these
protocols can be passed to ``has_annotation_for_symbol``. The dataclasses at
the bottom are plain implementations for hosts without a richer model, and
for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from extannotations.config.constants import UNKNOWN_MEMBER_KIND


class AssemblyRef(Protocol):
    """Identity of the assembly that declares a symbol."""

    @property
    def name(self) -> str: ...


class Symbol(Protocol):
    """A field, property, method (return value) or parameter."""

    @property
    def name(self) -> str: ...

    @property
    def documentation_id(self) -> str | None:
        """Documentation-comment id, e.g. ``"M:N.C.Foo(System.String)"``."""
        ...

    @property
    def is_parameter(self) -> bool: ...

    @property
    def containing_symbol(self) -> Symbol | None: ...

    @property
    def containing_assembly(self) -> AssemblyRef | None: ...


class BinaryReference(Protocol):
    @property
    def file_path(self) -> str | None: ...


class Compilation(Protocol):
    def get_metadata_reference(self, assembly: AssemblyRef) -> BinaryReference | None:
        """Return the on-disk reference for ``assembly``, or None for source assemblies."""
        ...


def split_documentation_id(documentation_id: str | None) -> tuple[str, str] | None:
    """Split ``"K:Id"`` into ``("K", "Id")``; None when there is no kind prefix."""
    if not documentation_id or len(documentation_id) < 2 or documentation_id[1] != ":":
        return None
    return documentation_id[0], documentation_id[2:]


def split_member_name(member_name: str) -> tuple[str, str]:
    """Split a ``<member name>`` value, degrading to kind ``"?"`` without a prefix."""
    if len(member_name) > 2 and member_name[1] == ":":
        return member_name[0], member_name[2:]
    return UNKNOWN_MEMBER_KIND, member_name


@dataclass(frozen=True)
class AssemblyIdentity:
    name: str


@dataclass(frozen=True)
class MetadataReference:
    file_path: str | None


@dataclass
class SymbolInfo:
    """Plain symbol record."""

    name: str
    documentation_id: str | None = None
    is_parameter: bool = False
    containing_symbol: SymbolInfo | None = None
    containing_assembly: AssemblyIdentity | None = None


@dataclass
class StaticCompilation:
    """Compilation backed by a fixed assembly-name to binary-path table."""

    references: dict[str, str] = field(default_factory=dict)

    def get_metadata_reference(self, assembly: AssemblyRef) -> MetadataReference | None:
        path = self.references.get(assembly.name)
        return MetadataReference(file_path=path) if path is not None else None
