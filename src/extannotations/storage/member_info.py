"""Per-member nullability facts."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class MemberNullabilityInfo:
    """Nullability facts for one member key.

    ``kind`` is the one-letter documentation id prefix: N = namespace,
    T = type, F = field, P = property, M = method, E = event, ``?`` = unknown.
    """

    kind: str
    has_nullability_defined: bool = False
    parameter_nullability: dict[str, bool] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the entry carries no nullability information at all."""
        return not self.has_nullability_defined and not self.parameter_nullability

    def has_parameter_nullability(self, parameter_name: str) -> bool:
        return self.parameter_nullability.get(parameter_name, False)
