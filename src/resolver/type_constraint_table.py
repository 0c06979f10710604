"""Per-operator type-constraint tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

from core.errors import KtsrResolverError
from core.types import ArgType, ArgTypeAndIndex

TypeConstraintEntry = tuple[str, tuple[ArgTypeAndIndex, ...]]


@dataclass(frozen=True)
class TypeConstraintTable:
    """Ordered mapping from type-parameter name to constrained arguments.

    All argument positions listed under one name share a single runtime
    element type. Names are unique; argument order follows schema
    declaration order and is significant for equality.

    Attributes:
        entries: Ordered (type_parameter_name, args) pairs.
    """

    entries: tuple[TypeConstraintEntry, ...] = ()

    def __post_init__(self) -> None:
        seen_names: set[str] = set()
        for name, args in self.entries:
            if name in seen_names:
                raise KtsrResolverError(
                    f"Duplicate type parameter '{name}' in type-constraint table."
                )
            seen_names.add(name)
            for arg in args:
                _validate_arg(name, arg)

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[tuple[str, Iterable[ArgTypeAndIndex]]],
    ) -> "TypeConstraintTable":
        """Build a table from (name, args) pairs, preserving order."""
        return cls(entries=tuple((name, tuple(args)) for name, args in pairs))

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Iterable[ArgTypeAndIndex]],
    ) -> "TypeConstraintTable":
        """Build a table from an insertion-ordered mapping."""
        return cls.from_pairs(mapping.items())

    def type_parameter_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.entries)

    def args_for(self, type_parameter_name: str) -> tuple[ArgTypeAndIndex, ...] | None:
        """Return args constrained by a type parameter, or None when unknown."""
        for name, args in self.entries:
            if name == type_parameter_name:
                return args
        return None

    def as_dict(self) -> dict[str, tuple[ArgTypeAndIndex, ...]]:
        return dict(self.entries)

    def __iter__(self) -> Iterator[TypeConstraintEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __str__(self) -> str:
        return ";".join(
            f"{name}=" + ",".join(str(arg) for arg in args) for name, args in self.entries
        )


def _validate_arg(type_parameter_name: str, arg: object) -> None:
    if not isinstance(arg, ArgTypeAndIndex):
        raise KtsrResolverError(
            f"Invalid argument for type parameter '{type_parameter_name}': "
            f"expected ArgTypeAndIndex, got {type(arg).__name__}."
        )
    if not isinstance(arg.arg_type, ArgType):
        raise KtsrResolverError(
            f"Invalid argument kind for type parameter '{type_parameter_name}': {arg.arg_type!r}."
        )
    if isinstance(arg.index, bool) or not isinstance(arg.index, int) or arg.index < 0:
        raise KtsrResolverError(
            f"Invalid argument index for type parameter '{type_parameter_name}': "
            f"expected non-negative integer, got {arg.index!r}."
        )
