"""Lookup structure for external nullability annotations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from extannotations.storage.member_info import MemberNullabilityInfo
from extannotations.symbols import split_documentation_id

if TYPE_CHECKING:
    from extannotations.symbols import Symbol


class AnnotationMap(dict[str, MemberNullabilityInfo]):
    """Member key (documentation id without its ``K:`` prefix) to nullability facts.

    Mutable while documents are parsed into it; treat as read-only once it
    has been handed to a cache provider.

    Known limitation: entries are matched by member id only. The declaring
    assembly (and its version) is not recorded, so an annotation for
    ``mscorlib 2.0`` also applies when ``mscorlib 4.0`` is referenced.
    """

    def get_or_add(self, key: str, kind: str) -> MemberNullabilityInfo:
        """Return the entry for ``key``, creating an empty one of ``kind`` if absent.

        An existing entry keeps its original kind.
        """
        info = self.get(key)
        if info is None:
            info = MemberNullabilityInfo(kind)
            self[key] = info
        return info

    def contains(
        self,
        key: str,
        kind: str,
        *,
        is_parameter: bool = False,
        parameter_name: str | None = None,
        applies_to_item: bool = False,
    ) -> bool:
        """Check whether the member (or one of its parameters) is annotated.

        For parameters, ``key``/``kind`` identify the containing member.
        """
        if applies_to_item:
            # The annotation format has no element for item (collection element)
            # nullability, so nothing can match.
            return False

        info = self._find(key, kind)
        if info is None:
            return False

        if is_parameter:
            return parameter_name is not None and info.has_parameter_nullability(parameter_name)
        return info.has_nullability_defined

    def contains_symbol(self, symbol: Symbol, applies_to_item: bool = False) -> bool:
        """Check a host symbol, deriving key and kind from its documentation id."""
        if applies_to_item:
            return False

        if symbol.is_parameter:
            owner = symbol.containing_symbol
            parts = split_documentation_id(owner.documentation_id if owner else None)
            if parts is None:
                return False
            kind, key = parts
            return self.contains(key, kind, is_parameter=True, parameter_name=symbol.name)

        parts = split_documentation_id(symbol.documentation_id)
        if parts is None:
            return False
        kind, key = parts
        return self.contains(key, kind)

    def compact(self) -> int:
        """Drop entries without any nullability information. Returns the number removed."""
        empty_keys = [key for key, info in self.items() if info.is_empty]
        for key in empty_keys:
            del self[key]
        return len(empty_keys)

    def _find(self, key: str, kind: str) -> MemberNullabilityInfo | None:
        info = self.get(key)
        # A type and a method (for example) can share the same textual id
        if info is None or info.kind != kind:
            return None
        return info
